"""Core feed caching: engines, the feed registry and error types."""
