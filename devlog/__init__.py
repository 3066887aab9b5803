"""Local, ephemeral log-collection endpoint for development sessions."""

__version__ = "0.1.0"
