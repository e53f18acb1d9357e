"""Roadmap records, generators and the generation workflow."""
