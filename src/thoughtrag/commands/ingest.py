# src/thoughtrag/commands/ingest.py
"""Ingest and retry commands - generate embeddings for thoughts.

This module provides the ingestion logic used by the CLI. Work runs through
the IngestionScheduler, so thoughts are processed concurrently up to
``max_concurrent_ingestions``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from thoughtrag.commands.base import IngestResult, ThoughtInfo
from thoughtrag.config import ConfigError, create_thoughtrag, get_thoughtrag_config
from thoughtrag.models import EmbeddingStatus, Thought
from thoughtrag.scheduler import IngestionScheduler

if TYPE_CHECKING:
    from thoughtrag.thoughtrag import ThoughtRAG

# Called with each thought once its ingestion has settled
ThoughtCallback = Callable[[ThoughtInfo], None]


def _load(data_dir: str | None, config_path: str | Path | None) -> ThoughtRAG | IngestResult:
    config = get_thoughtrag_config(data_dir, config_path)
    if isinstance(config, ConfigError):
        return IngestResult(success=False, error=config.message)
    try:
        return create_thoughtrag(config)
    except Exception as e:
        return IngestResult(success=False, error=f"Failed to create ThoughtRAG: {e}")


def ingest(
    thought_ids: Sequence[str] | None = None,
    team_ids: Sequence[str] | None = None,
    data_dir: str | None = None,
    config_path: str | Path | None = None,
    on_thought_complete: ThoughtCallback | None = None,
) -> IngestResult:
    """Ingest thoughts by id, or every pending thought if no ids are given.

    Args:
        thought_ids: Thoughts to ingest (None for all pending)
        team_ids: Restrict the pending scan to these teams
        data_dir: Override data directory
        config_path: Override config file path
        on_thought_complete: Callback as each thought settles

    Returns:
        IngestResult with completed and failed thoughts
    """
    rag = _load(data_dir, config_path)
    if isinstance(rag, IngestResult):
        return rag
    return ingest_with_thoughtrag(rag, thought_ids, team_ids, on_thought_complete)


def retry(
    thought_ids: Sequence[str] | None = None,
    team_ids: Sequence[str] | None = None,
    data_dir: str | None = None,
    config_path: str | Path | None = None,
    on_thought_complete: ThoughtCallback | None = None,
) -> IngestResult:
    """Retry failed thoughts by id, or every failed thought if no ids are given.

    Thoughts that have used up their attempts are reported as skipped.
    """
    rag = _load(data_dir, config_path)
    if isinstance(rag, IngestResult):
        return rag
    return retry_with_thoughtrag(rag, thought_ids, team_ids, on_thought_complete)


def ingest_with_thoughtrag(
    rag: ThoughtRAG,
    thought_ids: Sequence[str] | None = None,
    team_ids: Sequence[str] | None = None,
    on_thought_complete: ThoughtCallback | None = None,
) -> IngestResult:
    """Ingest thoughts using an existing ThoughtRAG instance."""
    result = IngestResult(success=True)
    targets = _resolve_targets(rag, thought_ids, team_ids, EmbeddingStatus.PENDING, result)
    return _run(rag, [t.id for t in targets], False, result, on_thought_complete)


def retry_with_thoughtrag(
    rag: ThoughtRAG,
    thought_ids: Sequence[str] | None = None,
    team_ids: Sequence[str] | None = None,
    on_thought_complete: ThoughtCallback | None = None,
) -> IngestResult:
    """Retry failed thoughts using an existing ThoughtRAG instance."""
    result = IngestResult(success=True)
    targets = _resolve_targets(rag, thought_ids, team_ids, EmbeddingStatus.FAILED, result)

    policy = rag.settings.build_retry_policy()
    runnable = []
    for thought in targets:
        if policy.allows(thought.embedding_attempts):
            runnable.append(thought.id)
        else:
            result.skipped.append(
                (thought.id, f"retry limit reached ({thought.embedding_attempts} attempts)")
            )
    return _run(rag, runnable, True, result, on_thought_complete)


def _resolve_targets(
    rag: ThoughtRAG,
    thought_ids: Sequence[str] | None,
    team_ids: Sequence[str] | None,
    default_status: EmbeddingStatus,
    result: IngestResult,
) -> list[Thought]:
    if not thought_ids:
        return rag.thought_store.list_thoughts(
            team_ids=list(team_ids) if team_ids else None,
            embedding_status=default_status,
        )

    targets = []
    for thought_id in dict.fromkeys(thought_ids):
        thought = rag.thought_store.get(thought_id)
        if thought is None:
            result.missing.append(thought_id)
        else:
            targets.append(thought)
    return targets


def _run(
    rag: ThoughtRAG,
    thought_ids: list[str],
    retry: bool,
    result: IngestResult,
    on_thought_complete: ThoughtCallback | None,
) -> IngestResult:
    async def run_all() -> list[Thought | None]:
        scheduler = IngestionScheduler(
            rag.ingestion_pipeline(), max_concurrent=rag.settings.max_concurrent_ingestions
        )
        submit = scheduler.submit_retry if retry else scheduler.submit
        tasks = [submit(thought_id) for thought_id in thought_ids]
        return list(await asyncio.gather(*tasks))

    settled = asyncio.run(run_all()) if thought_ids else []

    for thought_id, thought in zip(thought_ids, settled, strict=True):
        if thought is None:
            result.missing.append(thought_id)
            continue
        info = ThoughtInfo.from_thought(thought)
        if thought.embedding_status == EmbeddingStatus.COMPLETED:
            result.completed.append(info)
        else:
            result.failed.append(info)
        if on_thought_complete:
            on_thought_complete(info)

    if result.missing and not result.processed:
        result.success = False
        result.error = f"Thought not found: {', '.join(result.missing)}"
    elif result.failed:
        result.success = False
        result.error = f"{len(result.failed)} of {result.processed} thoughts failed"

    return result
