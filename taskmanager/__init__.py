"""Task management REST service."""

__version__ = "1.0.0"
