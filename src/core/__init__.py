"""Profile model, normalization and clock."""
