"""Core definitions: configuration, error taxonomy and shared types."""
