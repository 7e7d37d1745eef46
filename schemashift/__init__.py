"""Versioned database schema migrations with an SQLite driver, an in-memory stub and CLI helpers."""

__version__ = "0.1.0"