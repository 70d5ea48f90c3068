"""
Document Store Domain

In-memory copies of the dashboard collections and the user registry,
mirrored to JSON files and reloaded whenever those files change on disk.
"""

__all__ = ["store", "users", "watchers"]
