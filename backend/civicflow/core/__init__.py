"""Core enums, exceptions and field registry."""
