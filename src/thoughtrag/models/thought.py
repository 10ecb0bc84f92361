# src/thoughtrag/models/thought.py
"""Thought data model."""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator


def utc_now() -> datetime:
    return datetime.now(UTC)


class ThoughtKind(str, Enum):
    """What a thought captures. Immutable after creation."""

    QUESTION = "question"
    ANSWER = "answer"
    DOCUMENT = "document"


class ThoughtStatus(str, Enum):
    """Open/closed state shown on questions."""

    OPEN = "open"
    CLOSED = "closed"


class EmbeddingStatus(str, Enum):
    """Lifecycle of the derived embedding fields.

    pending -> processing -> completed | failed
    failed -> processing (explicit retry)
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (EmbeddingStatus.COMPLETED, EmbeddingStatus.FAILED)


class Thought(BaseModel):
    """One unit of captured team knowledge.

    The derived fields (ai_description, embedding, embedding_status and the
    attempt bookkeeping) are written only by the ingestion pipeline.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    kind: ThoughtKind = ThoughtKind.DOCUMENT
    user_id: str
    team_id: str
    title: str = ""
    description: str = ""
    image_url: str | None = None
    status: ThoughtStatus = ThoughtStatus.CLOSED
    parent_question_id: str | None = None

    # Derived fields
    ai_description: str | None = None
    embedding: list[float] | None = None
    embedding_status: EmbeddingStatus = EmbeddingStatus.PENDING
    embedding_attempts: int = 0
    embedding_error: str | None = None
    last_attempt_at: datetime | None = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _embedding_matches_status(self) -> "Thought":
        completed = self.embedding_status == EmbeddingStatus.COMPLETED
        if completed and self.embedding is None:
            raise ValueError("A completed thought must carry an embedding")
        if not completed and self.embedding is not None:
            raise ValueError(
                f"Only completed thoughts may carry an embedding "
                f"(status is {self.embedding_status.value})"
            )
        return self

    @property
    def is_searchable(self) -> bool:
        """True once the thought has entered the retrieval corpus."""
        return self.embedding_status == EmbeddingStatus.COMPLETED

    @property
    def context_text(self) -> str:
        """Text used as grounding context: the generated description if any."""
        return self.ai_description or self.description
