"""Domain models and input schemas."""
