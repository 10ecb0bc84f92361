# src/thoughtrag/stores/base.py
"""Abstract base classes for storage."""

from abc import ABC, abstractmethod

from thoughtrag.models import EmbeddingStatus, RetrievedMatch, Thought


class ThoughtStore(ABC):
    """Abstract base class for thought (content) storage.

    The status methods are the only writes the ingestion pipeline performs.
    Each one must be a single atomic update of one thought and must return
    False, not raise, when the thought does not exist.
    """

    @abstractmethod
    def put(self, thought: Thought) -> None:
        """Store a thought, overwriting if it exists."""
        ...

    @abstractmethod
    def get(self, thought_id: str) -> Thought | None:
        """Retrieve a thought by ID. Returns None if not found."""
        ...

    @abstractmethod
    def delete(self, thought_id: str) -> None:
        """Delete a thought by ID."""
        ...

    @abstractmethod
    def list_thoughts(
        self,
        team_ids: list[str] | None = None,
        embedding_status: EmbeddingStatus | None = None,
    ) -> list[Thought]:
        """List thoughts, newest first, optionally filtered by team and status."""
        ...

    @abstractmethod
    def count_by_status(self, team_ids: list[str] | None = None) -> dict[EmbeddingStatus, int]:
        """Count thoughts per embedding status (every status is present)."""
        ...

    @abstractmethod
    def mark_processing(self, thought_id: str) -> bool:
        """Enter processing: bump the attempt count, stamp the attempt time
        and clear any previous derived fields."""
        ...

    @abstractmethod
    def mark_completed(self, thought_id: str, ai_description: str, embedding: list[float]) -> bool:
        """Persist description, embedding and completed status in one update."""
        ...

    @abstractmethod
    def mark_failed(self, thought_id: str, error: str | None = None) -> bool:
        """Persist failed status with the error and no derived fields."""
        ...


class VectorStore(ABC):
    """Nearest-neighbour search over completed thoughts, scoped by team."""

    @abstractmethod
    def search(
        self,
        query_embedding: list[float],
        team_ids: list[str],
        match_threshold: float,
        match_count: int,
    ) -> list[RetrievedMatch]:
        """Search for similar thoughts.

        Args:
            query_embedding: Query vector.
            team_ids: Only thoughts belonging to these teams may be returned.
            match_threshold: Minimum similarity in [0, 1].
            match_count: Maximum number of matches.

        Returns:
            Matches ordered by descending similarity.
        """
        ...
