"""Core components of Request Client."""
