# src/thoughtrag/commands/status.py
"""Status command - show embedding status of the stored thoughts.

Reads the store directly, so no provider configuration is needed.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path

from thoughtrag.commands.base import StatusResult, ThoughtInfo
from thoughtrag.config import DEFAULT_DATA_DIR, ENV_PREFIX, get_store, load_config
from thoughtrag.models import EmbeddingStatus


def status(
    team_ids: Sequence[str] | None = None,
    data_dir: str | None = None,
    config_path: str | Path | None = None,
) -> StatusResult:
    """Count thoughts per embedding status and list the failed ones.

    Args:
        team_ids: Restrict to these teams (None for all)
        data_dir: Override data directory
        config_path: Override config file path

    Returns:
        StatusResult with per-status counts
    """
    config = load_config(config_path)
    effective_data_dir = (
        data_dir
        or os.environ.get(f"{ENV_PREFIX}DATA_DIR")
        or config.get("data_dir")
        or DEFAULT_DATA_DIR
    )

    if not os.path.exists(effective_data_dir):
        return StatusResult(
            success=True,
            counts={s.value: 0 for s in EmbeddingStatus},
        )

    try:
        store = get_store(effective_data_dir)
        teams = list(team_ids) if team_ids else None
        counts = store.count_by_status(teams)
        failed = store.list_thoughts(team_ids=teams, embedding_status=EmbeddingStatus.FAILED)
    except Exception as e:
        return StatusResult(success=False, error=f"Failed to access database: {e}")

    return StatusResult(
        success=True,
        counts={s.value: n for s, n in counts.items()},
        failed=[ThoughtInfo.from_thought(t) for t in failed],
    )
