# src/thoughtrag/commands/__init__.py
"""UI-agnostic command layer for thoughtrag.

Commands return data structures, allowing UIs to render results appropriately.

Usage:
    from thoughtrag.commands import ask, ingest, status

    result = ingest.ingest()
    result = ask.ask("Where is the red bicycle?", ["team-a"])
    result = status.status()
"""

from thoughtrag.commands import add, ask, ingest, search, status
from thoughtrag.commands.base import (
    AddResult,
    AskResult,
    CommandResult,
    DeltaCallback,
    IngestResult,
    MatchInfo,
    SearchResult,
    StatusResult,
    ThoughtInfo,
)

__all__ = [
    # Base types
    "CommandResult",
    "DeltaCallback",
    "ThoughtInfo",
    "MatchInfo",
    # Result types
    "AddResult",
    "IngestResult",
    "AskResult",
    "SearchResult",
    "StatusResult",
    # Command modules
    "add",
    "ingest",
    "ask",
    "search",
    "status",
]
