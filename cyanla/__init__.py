"""Chat history storage on SQLite, user table helpers and statistics reports."""

__version__ = "1.0.0"