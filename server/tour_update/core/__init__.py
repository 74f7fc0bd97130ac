"""Core infrastructure: configuration, errors, observability, middleware."""
