"""Record filesystem changes under a directory tree into a SQLite database."""

__version__ = "0.1.0"
