# src/thoughtrag/configuration/storage/__init__.py
"""Storage configurations for thoughtrag."""

from thoughtrag.configuration.storage.local import LocalStorage

__all__ = ["LocalStorage"]
