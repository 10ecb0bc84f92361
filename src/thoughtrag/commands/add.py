# src/thoughtrag/commands/add.py
"""Add command - capture a thought record.

This module provides the capture logic used by the CLI.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from thoughtrag.commands.base import AddResult, ThoughtInfo
from thoughtrag.config import ConfigError, create_thoughtrag, get_thoughtrag_config
from thoughtrag.errors import ThoughtRAGError
from thoughtrag.models import ThoughtKind
from thoughtrag.scheduler import IngestionScheduler

if TYPE_CHECKING:
    from thoughtrag.thoughtrag import ThoughtRAG


def add(
    user_id: str,
    team_id: str,
    kind: ThoughtKind = ThoughtKind.DOCUMENT,
    title: str = "",
    description: str = "",
    image_url: str | None = None,
    parent_question_id: str | None = None,
    ingest: bool = False,
    data_dir: str | None = None,
    config_path: str | Path | None = None,
) -> AddResult:
    """Capture a thought, optionally ingesting it before returning.

    Args:
        user_id: Creator of the thought
        team_id: Team the thought belongs to
        kind: question, answer or document
        title: Short title
        description: User-authored text
        image_url: Image to describe and embed
        parent_question_id: Question an answer or document belongs to
        ingest: If True, run ingestion and report its outcome
        data_dir: Override data directory
        config_path: Override config file path

    Returns:
        AddResult with the captured thought
    """
    config = get_thoughtrag_config(data_dir, config_path)
    if isinstance(config, ConfigError):
        return AddResult(success=False, error=config.message)

    try:
        rag = create_thoughtrag(config)
    except Exception as e:
        return AddResult(success=False, error=f"Failed to create ThoughtRAG: {e}")

    return add_with_thoughtrag(
        rag,
        user_id=user_id,
        team_id=team_id,
        kind=kind,
        title=title,
        description=description,
        image_url=image_url,
        parent_question_id=parent_question_id,
        ingest=ingest,
    )


def add_with_thoughtrag(
    rag: ThoughtRAG,
    *,
    user_id: str,
    team_id: str,
    kind: ThoughtKind = ThoughtKind.DOCUMENT,
    title: str = "",
    description: str = "",
    image_url: str | None = None,
    parent_question_id: str | None = None,
    ingest: bool = False,
) -> AddResult:
    """Capture a thought using an existing ThoughtRAG instance."""
    try:
        thought = rag.capture(
            user_id=user_id,
            team_id=team_id,
            kind=kind,
            title=title,
            description=description,
            image_url=image_url,
            parent_question_id=parent_question_id,
        )
    except ThoughtRAGError as e:
        return AddResult(success=False, error=str(e))

    if not ingest:
        return AddResult(success=True, thought=ThoughtInfo.from_thought(thought))

    async def run() -> None:
        scheduler = IngestionScheduler(
            rag.ingestion_pipeline(), max_concurrent=rag.settings.max_concurrent_ingestions
        )
        await scheduler.submit(thought.id)

    asyncio.run(run())

    persisted = rag.thought_store.get(thought.id) or thought
    info = ThoughtInfo.from_thought(persisted)
    if info.embedding_status != "completed":
        return AddResult(
            success=False,
            thought=info,
            ingested=True,
            error=f"Captured {thought.id} but ingestion failed: {info.error}",
        )
    return AddResult(success=True, thought=info, ingested=True)
