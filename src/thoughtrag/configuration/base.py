# src/thoughtrag/configuration/base.py
"""Protocol definitions for configuration objects.

These protocols define the interfaces for provider and storage configurations.
Implementations can use @dataclass(frozen=True) for immutability. Any object
with the right methods satisfies them, no inheritance required.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from thoughtrag.providers import CompletionService, DescriptionService, EmbeddingService
    from thoughtrag.settings import Settings
    from thoughtrag.stores import ThoughtStore, VectorStore


@runtime_checkable
class ProviderConfig(Protocol):
    """Protocol for provider configurations.

    Provider configurations build the model services:
    - EmbeddingService: Embeds descriptions and questions
    - DescriptionService: Describes captured images
    - CompletionService: Generates grounded answers

    Example implementation:
        @dataclass(frozen=True)
        class MyProvider:
            def build_embedding_service(self, settings: Settings) -> EmbeddingService: ...
            def build_description_service(self, settings: Settings) -> DescriptionService: ...
            def build_completion_service(self, settings: Settings) -> CompletionService: ...
    """

    def build_embedding_service(self, settings: Settings) -> EmbeddingService:
        """Build the embedding service."""
        ...

    def build_description_service(self, settings: Settings) -> DescriptionService:
        """Build the image description service.

        Args:
            settings: Settings containing description_prompt and
                      description_max_tokens if customized.
        """
        ...

    def build_completion_service(self, settings: Settings) -> CompletionService:
        """Build the chat completion service used for answers."""
        ...


@runtime_checkable
class StorageConfig(Protocol):
    """Protocol for storage configurations.

    Storage configurations build the data stores:
    - ThoughtStore: Thought records and their embedding status
    - VectorStore: Similarity search over completed thoughts

    One object may implement both.
    """

    def build_stores(self) -> tuple[ThoughtStore, VectorStore]:
        """Build the storage components.

        Returns:
            Tuple of (thought_store, vector_store)
        """
        ...
