"""Structured logging with request context."""
