# src/thoughtrag/commands/base.py
"""Base types for the commands layer.

This module defines the data structures used by all commands. Commands
return these instead of printing, so any UI can render them.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from thoughtrag.models import RetrievedMatch, Thought

# Callback type for streamed answer text
DeltaCallback = Callable[[str], None]


@dataclass
class CommandResult:
    """Base result type for commands."""

    success: bool
    error: str | None = None


@dataclass
class ThoughtInfo:
    """Summary of one thought and its embedding state."""

    id: str
    kind: str
    team_id: str
    title: str
    embedding_status: str
    attempts: int = 0
    error: str | None = None
    ai_description: str | None = None

    @classmethod
    def from_thought(cls, thought: Thought) -> ThoughtInfo:
        return cls(
            id=thought.id,
            kind=thought.kind.value,
            team_id=thought.team_id,
            title=thought.title,
            embedding_status=thought.embedding_status.value,
            attempts=thought.embedding_attempts,
            error=thought.embedding_error,
            ai_description=thought.ai_description,
        )


@dataclass
class MatchInfo:
    """A single retrieved thought with its similarity."""

    id: str
    team_id: str
    kind: str
    title: str
    text: str
    similarity: float

    @classmethod
    def from_match(cls, match: RetrievedMatch) -> MatchInfo:
        return cls(
            id=match.id,
            team_id=match.team_id,
            kind=match.kind.value,
            title=match.title,
            text=match.context_text,
            similarity=match.similarity,
        )


@dataclass
class AddResult(CommandResult):
    """Result of the add command.

    Attributes:
        thought: The captured thought (after ingestion, if requested)
        ingested: True if ingestion ran as part of the command
    """

    thought: ThoughtInfo | None = None
    ingested: bool = False


@dataclass
class IngestResult(CommandResult):
    """Result of the ingest and retry commands.

    Attributes:
        completed: Thoughts that ended completed
        failed: Thoughts that ended failed
        skipped: (thought id, reason) for thoughts not attempted
        missing: Requested ids that do not exist
    """

    completed: list[ThoughtInfo] = field(default_factory=list)
    failed: list[ThoughtInfo] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.completed) + len(self.failed)


@dataclass
class AskResult(CommandResult):
    """Result of the ask command.

    Attributes:
        question: The original question
        answer: The full answer text
        matches: Thoughts used as context
    """

    question: str = ""
    answer: str = ""
    matches: list[MatchInfo] = field(default_factory=list)

    @property
    def grounded(self) -> bool:
        """False when no thought matched and the answer is general knowledge."""
        return bool(self.matches)


@dataclass
class SearchResult(CommandResult):
    """Result of the search command."""

    query: str = ""
    matches: list[MatchInfo] = field(default_factory=list)


@dataclass
class StatusResult(CommandResult):
    """Result of the status command.

    Attributes:
        counts: Number of thoughts per embedding status
        failed: Failed thoughts with their last error
    """

    counts: dict[str, int] = field(default_factory=dict)
    failed: list[ThoughtInfo] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.counts.values())
