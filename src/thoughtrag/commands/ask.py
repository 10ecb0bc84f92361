# src/thoughtrag/commands/ask.py
"""Ask command - answer a question from the team knowledge base.

This module provides the question-answering logic used by the CLI.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from thoughtrag.commands.base import AskResult, DeltaCallback, MatchInfo
from thoughtrag.config import ConfigError, create_thoughtrag, get_thoughtrag_config
from thoughtrag.errors import ThoughtRAGError

if TYPE_CHECKING:
    from thoughtrag.thoughtrag import ThoughtRAG


def ask(
    question: str,
    team_ids: Sequence[str],
    data_dir: str | None = None,
    config_path: str | Path | None = None,
    on_delta: DeltaCallback | None = None,
) -> AskResult:
    """Answer a question grounded in the thoughts of *team_ids*.

    Args:
        question: The question to ask
        team_ids: Teams whose thoughts may be used
        data_dir: Override data directory
        config_path: Override config file path
        on_delta: If given, the answer is streamed and each text delta is
                  passed here as it arrives

    Returns:
        AskResult with the full answer and the matches used as context
    """
    config = get_thoughtrag_config(data_dir, config_path)
    if isinstance(config, ConfigError):
        return AskResult(success=False, question=question, error=config.message)

    try:
        rag = create_thoughtrag(config)
    except Exception as e:
        return AskResult(
            success=False, question=question, error=f"Failed to create ThoughtRAG: {e}"
        )

    return ask_with_thoughtrag(rag, question, team_ids, on_delta=on_delta)


def ask_with_thoughtrag(
    rag: ThoughtRAG,
    question: str,
    team_ids: Sequence[str],
    on_delta: DeltaCallback | None = None,
) -> AskResult:
    """Answer a question using an existing ThoughtRAG instance."""
    pipeline = rag.query_pipeline()

    async def run() -> AskResult:
        if on_delta is None:
            response = await pipeline.answer(question, team_ids)
            return AskResult(
                success=True,
                question=question,
                answer=response.answer,
                matches=[MatchInfo.from_match(m) for m in response.matches],
            )

        matches = await pipeline.retrieve(question, team_ids)
        parts: list[str] = []
        async for delta in pipeline.astream_completion(question, matches):
            parts.append(delta)
            on_delta(delta)
        return AskResult(
            success=True,
            question=question,
            answer="".join(parts),
            matches=[MatchInfo.from_match(m) for m in matches],
        )

    try:
        return asyncio.run(run())
    except ThoughtRAGError as e:
        return AskResult(success=False, question=question, error=f"Query failed: {e}")
