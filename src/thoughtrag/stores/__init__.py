# src/thoughtrag/stores/__init__.py
"""Storage abstractions for thoughtrag."""

from thoughtrag.stores.base import ThoughtStore, VectorStore
from thoughtrag.stores.sqlite_thought import SQLiteThoughtStore

__all__ = [
    "ThoughtStore",
    "VectorStore",
    "SQLiteThoughtStore",
]
