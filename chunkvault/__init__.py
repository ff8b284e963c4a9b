"""Encrypted, chunked and replicated file storage behind a small HTTP front node."""

__version__ = "0.1.0"

__all__ = ["__version__"]