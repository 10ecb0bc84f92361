"""Data models for thoughtrag."""

from thoughtrag.models.events import ThoughtChange
from thoughtrag.models.results import AnswerResult, QueryRequest, RetrievedMatch
from thoughtrag.models.thought import (
    EmbeddingStatus,
    Thought,
    ThoughtKind,
    ThoughtStatus,
)

__all__ = [
    "Thought",
    "ThoughtKind",
    "ThoughtStatus",
    "EmbeddingStatus",
    "ThoughtChange",
    "QueryRequest",
    "RetrievedMatch",
    "AnswerResult",
]
