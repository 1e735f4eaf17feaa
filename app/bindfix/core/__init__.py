"""Core configuration, paths and logging for bindfix."""
