# src/thoughtrag/thoughtrag.py
"""Central configuration class for thoughtrag."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, cast

if TYPE_CHECKING:
    from thoughtrag.chat import ChatSession
    from thoughtrag.configuration import ProviderConfig, StorageConfig
    from thoughtrag.events import ChangePublisher
    from thoughtrag.ingestor import IngestionPipeline
    from thoughtrag.retriever import QueryPipeline
    from thoughtrag.scheduler import IngestionScheduler
    from thoughtrag.stores import ThoughtStore, VectorStore

from thoughtrag.errors import NotFoundError, ValidationError
from thoughtrag.events import ChangeBus
from thoughtrag.models import Thought, ThoughtKind, ThoughtStatus
from thoughtrag.settings import Settings

logger = logging.getLogger(__name__)


class ThoughtRAG:
    """Central configuration for thoughtrag stores and services.

    ThoughtRAG bundles the stores, model services and settings together so
    you can configure once and create pipelines from it.

    There are two ways to create a ThoughtRAG instance:

    1. With a storage bundle:

        from thoughtrag import LiteLLMProvider, LocalStorage, ThoughtRAG

        rag = ThoughtRAG(
            provider=LiteLLMProvider(
                llm="openai/gpt-4o",
                embedding="openai/text-embedding-3-small",
            ),
            storage=LocalStorage("./data"),
        )
        thought = rag.capture(user_id="u1", team_id="team-a", image_url="https://...")
        rag.scheduler().submit(thought.id)

    2. With explicit stores:

        rag = ThoughtRAG.from_stores(
            provider=LiteLLMProvider(...),
            thought_store=my_store,
            vector_store=my_vector_store,
        )

    Status changes from ingestion are published to ``rag.changes``; when no
    publisher is given this is an in-process ChangeBus you can subscribe to.
    """

    def __init__(
        self,
        *,
        provider: ProviderConfig,
        # EITHER storage bundle...
        storage: StorageConfig | None = None,
        # ...OR explicit stores
        thought_store: ThoughtStore | None = None,
        vector_store: VectorStore | None = None,
        # Common
        settings: Settings | None = None,
        publisher: ChangePublisher | None = None,
    ) -> None:
        """Create a ThoughtRAG instance.

        Args:
            provider: Provider configuration (builds the model services).
            storage: Storage bundle. Mutually exclusive with explicit stores.
                     Example: LocalStorage("./data")
            thought_store: Explicit thought store. Use with vector_store.
            vector_store: Explicit vector store.
            settings: Behavioral settings (presets, timeouts, retry policy, ...)
            publisher: Receives status changes. Defaults to a new ChangeBus.

        Raises:
            ValueError: If neither storage bundle nor both explicit stores are
                       provided, or if both are provided.
        """
        self._settings = settings if settings is not None else Settings()

        # Path 1: Storage bundle
        if storage is not None:
            if thought_store is not None or vector_store is not None:
                raise ValueError("Cannot mix 'storage' bundle with explicit stores")
            self.thought_store, self.vector_store = storage.build_stores()

        # Path 2: Explicit stores
        elif thought_store is not None and vector_store is not None:
            self.thought_store = cast("ThoughtStore", thought_store)
            self.vector_store = cast("VectorStore", vector_store)

        else:
            raise ValueError(
                "Must provide either 'storage' bundle or both explicit stores "
                "(thought_store, vector_store)"
            )

        self.embedding_service = provider.build_embedding_service(self._settings)
        self.description_service = provider.build_description_service(self._settings)
        self.completion_service = provider.build_completion_service(self._settings)

        self.changes: ChangePublisher = publisher if publisher is not None else ChangeBus()
        self._scheduler: IngestionScheduler | None = None

    @classmethod
    def from_stores(
        cls,
        *,
        provider: ProviderConfig,
        thought_store: ThoughtStore,
        vector_store: VectorStore,
        settings: Settings | None = None,
        publisher: ChangePublisher | None = None,
    ) -> ThoughtRAG:
        """Create ThoughtRAG with explicit stores."""
        return cls(
            provider=provider,
            thought_store=thought_store,
            vector_store=vector_store,
            settings=settings,
            publisher=publisher,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    def capture(
        self,
        *,
        user_id: str,
        team_id: str,
        kind: ThoughtKind = ThoughtKind.DOCUMENT,
        title: str = "",
        description: str = "",
        image_url: str | None = None,
        parent_question_id: str | None = None,
    ) -> Thought:
        """Create a thought record with a pending embedding.

        Questions start open, everything else starts closed. Ingestion is not
        started here; submit the returned id to scheduler().

        Raises:
            ValidationError: Missing owner or team, or a parent that is not a question.
            NotFoundError: The parent question does not exist.
        """
        if not user_id or not user_id.strip():
            raise ValidationError("user_id must not be empty")
        if not team_id or not team_id.strip():
            raise ValidationError("team_id must not be empty")

        if parent_question_id:
            if kind == ThoughtKind.QUESTION:
                raise ValidationError("A question cannot have a parent question")
            parent = self.thought_store.get(parent_question_id)
            if parent is None:
                raise NotFoundError(parent_question_id)
            if parent.kind != ThoughtKind.QUESTION:
                raise ValidationError(f"Parent {parent_question_id} is not a question")

        thought = Thought(
            kind=kind,
            user_id=user_id,
            team_id=team_id,
            title=title,
            description=description,
            image_url=image_url,
            status=ThoughtStatus.OPEN if kind == ThoughtKind.QUESTION else ThoughtStatus.CLOSED,
            parent_question_id=parent_question_id or None,
        )
        self.thought_store.put(thought)
        logger.info("Captured %s %s for team %s", kind.value, thought.id, team_id)
        return thought

    def ingestion_pipeline(self) -> IngestionPipeline:
        """Create an IngestionPipeline using this instance's stores and services."""
        from thoughtrag.ingestor import IngestionPipeline

        return IngestionPipeline(
            thought_store=self.thought_store,
            description_service=self.description_service,
            embedding_service=self.embedding_service,
            publisher=self.changes,
            description_timeout=self._settings.description_timeout,
            embedding_timeout=self._settings.embedding_timeout,
            retry_policy=self._settings.build_retry_policy(),
        )

    def scheduler(self) -> IngestionScheduler:
        """The shared IngestionScheduler of this instance (created on first use)."""
        if self._scheduler is None:
            from thoughtrag.scheduler import IngestionScheduler

            self._scheduler = IngestionScheduler(
                self.ingestion_pipeline(),
                max_concurrent=self._settings.max_concurrent_ingestions,
            )
        return self._scheduler

    def query_pipeline(self, *, prompt_template: str | None = None) -> QueryPipeline:
        """Create a QueryPipeline using this instance's stores and services.

        Args:
            prompt_template: Custom grounding prompt. If None, uses settings.
        """
        from thoughtrag.retriever import QueryPipeline

        return QueryPipeline(
            embedding_service=self.embedding_service,
            vector_store=self.vector_store,
            completion_service=self.completion_service,
            chat_preset=self._settings.resolve_chat_preset(),
            search_preset=self._settings.resolve_search_preset(),
            prompt_template=prompt_template or self._settings.grounding_prompt,
            embedding_timeout=self._settings.embedding_timeout,
            search_timeout=self._settings.search_timeout,
            completion_timeout=self._settings.completion_timeout,
            stream_read_timeout=self._settings.stream_read_timeout,
        )

    def chat(self, team_ids: Sequence[str]) -> ChatSession:
        """Start a chat session scoped to *team_ids*."""
        from thoughtrag.chat import ChatSession

        return ChatSession(self.query_pipeline(), team_ids)
