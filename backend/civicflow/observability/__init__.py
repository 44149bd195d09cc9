"""Logging setup and redaction helpers."""
