"""Tour schedule constraint and update-request diff service."""

__version__ = "1.0.0"
