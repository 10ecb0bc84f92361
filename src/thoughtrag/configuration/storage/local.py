# src/thoughtrag/configuration/storage/local.py
"""Local filesystem storage configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from thoughtrag.stores import ThoughtStore, VectorStore

DATABASE_FILENAME = "thoughts.db"


@dataclass(frozen=True)
class LocalStorage:
    """Local filesystem storage using SQLite.

    All data is persisted to ``<data_dir>/thoughts.db``. Thoughts and their
    embeddings share one table, so the same store serves as both the
    ThoughtStore and the VectorStore.

    Args:
        data_dir: Base directory for all storage files.
                  Created if it doesn't exist.

    Example:
        storage = LocalStorage("./my_data")
        thought_store, vector_store = storage.build_stores()
    """

    data_dir: str

    @property
    def db_path(self) -> str:
        return os.path.join(self.data_dir, DATABASE_FILENAME)

    def build_stores(self) -> tuple[ThoughtStore, VectorStore]:
        """Build the thought store and vector store.

        Creates the data directory if it doesn't exist.
        """
        from thoughtrag.stores import SQLiteThoughtStore

        Path(self.data_dir).mkdir(parents=True, exist_ok=True)

        store = SQLiteThoughtStore(self.db_path)
        return store, store
