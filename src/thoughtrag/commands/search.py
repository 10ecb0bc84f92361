# src/thoughtrag/commands/search.py
"""Search command - find thoughts similar to a query."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from thoughtrag.commands.base import MatchInfo, SearchResult
from thoughtrag.config import ConfigError, create_thoughtrag, get_thoughtrag_config
from thoughtrag.errors import ThoughtRAGError

if TYPE_CHECKING:
    from thoughtrag.thoughtrag import ThoughtRAG


def search(
    query: str,
    team_ids: Sequence[str],
    data_dir: str | None = None,
    config_path: str | Path | None = None,
) -> SearchResult:
    """Search the thoughts of *team_ids* with the interactive-search preset.

    An empty match list is a successful result, not an error.
    """
    config = get_thoughtrag_config(data_dir, config_path)
    if isinstance(config, ConfigError):
        return SearchResult(success=False, query=query, error=config.message)

    try:
        rag = create_thoughtrag(config)
    except Exception as e:
        return SearchResult(success=False, query=query, error=f"Failed to create ThoughtRAG: {e}")

    return search_with_thoughtrag(rag, query, team_ids)


def search_with_thoughtrag(rag: ThoughtRAG, query: str, team_ids: Sequence[str]) -> SearchResult:
    """Search using an existing ThoughtRAG instance."""
    pipeline = rag.query_pipeline()
    try:
        matches = asyncio.run(pipeline.search(query, team_ids))
    except ThoughtRAGError as e:
        return SearchResult(success=False, query=query, error=f"Search failed: {e}")

    return SearchResult(
        success=True,
        query=query,
        matches=[MatchInfo.from_match(m) for m in matches],
    )
