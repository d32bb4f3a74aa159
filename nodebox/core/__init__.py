"""Core modules for nodebox."""
