"""A small in-memory key-value store and TCP server answering a subset of Redis commands."""

__version__ = "0.1.0"
__all__ = ["commands", "database", "server"]