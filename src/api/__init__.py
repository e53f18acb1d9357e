"""Service wiring entry points."""
