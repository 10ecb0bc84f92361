"""Change events published by the ingestion pipeline."""

from datetime import datetime

from pydantic import BaseModel, Field

from thoughtrag.models.thought import EmbeddingStatus, utc_now


class ThoughtChange(BaseModel):
    """A status change on one thought, keyed by its team for fan-out."""

    thought_id: str
    team_id: str | None
    embedding_status: EmbeddingStatus
    error: str | None = None
    occurred_at: datetime = Field(default_factory=utc_now)
