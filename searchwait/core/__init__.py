"""Core error taxonomy."""
