"""LLM client layer used for roadmap generation."""
