"""Cache tiers: memory, exact-key and similarity lookup."""
