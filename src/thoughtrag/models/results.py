# src/thoughtrag/models/results.py
"""Result data models for thoughtrag queries."""

from pydantic import BaseModel, Field

from thoughtrag.models.thought import ThoughtKind


class QueryRequest(BaseModel):
    """An ephemeral question scoped to a set of teams."""

    question: str
    team_ids: list[str]


class RetrievedMatch(BaseModel):
    """A thought returned by similarity search, with its score."""

    id: str
    team_id: str
    kind: ThoughtKind = ThoughtKind.DOCUMENT
    title: str = ""
    description: str = ""
    ai_description: str | None = None
    image_url: str | None = None
    similarity: float = Field(ge=0.0, le=1.0)

    @property
    def context_text(self) -> str:
        """Generated description if present, else the user-authored one."""
        return self.ai_description or self.description


class AnswerResult(BaseModel):
    """Full response to a blocking question."""

    question: str
    answer: str
    matches: list[RetrievedMatch]
