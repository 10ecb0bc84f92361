"""Shared pytest fixtures."""

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

import pytest

from thoughtrag.models import EmbeddingStatus, Thought, ThoughtKind
from thoughtrag.models.thought import utc_now
from thoughtrag.providers import CompletionService, DescriptionService, EmbeddingService
from thoughtrag.stores import SQLiteThoughtStore
from thoughtrag.streaming import encode_done, encode_event
from thoughtrag.thoughtrag import ThoughtRAG

DEFAULT_VECTOR = [1.0, 0.0, 0.0]


def delta_frame(content: str) -> bytes:
    """Encode one chat-completion chunk carrying *content*."""
    return encode_event({"choices": [{"index": 0, "delta": {"content": content}}]})


class FakeEmbeddingService(EmbeddingService):
    """Embedding service returning configured vectors per text."""

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        default: list[float] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.vectors = vectors or {}
        self.default = default or DEFAULT_VECTOR
        self.error = error
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return list(self.vectors.get(text, self.default))


class FakeDescriptionService(DescriptionService):
    """Description service returning a fixed description."""

    def __init__(
        self,
        description: str = "a red bicycle",
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.description = description
        self.error = error
        self.delay = delay
        self.calls: list[str] = []

    async def describe(self, image_url: str) -> str:
        self.calls.append(image_url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.description


class FakeCompletionService(CompletionService):
    """Completion service with a canned answer and canned stream chunks."""

    def __init__(
        self,
        answer: str = "The bicycle is in the shed.",
        chunks: list[bytes] | None = None,
        error: Exception | None = None,
        chunk_delay: float = 0.0,
    ) -> None:
        self.answer = answer
        self.chunks = (
            chunks
            if chunks is not None
            else [delta_frame("The bicycle "), delta_frame("is in the shed."), encode_done()]
        )
        self.error = error
        self.chunk_delay = chunk_delay
        self.prompts: list[str] = []
        self.closed = False

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.answer

    async def stream(self, prompt: str) -> AsyncIterator[bytes]:
        self.prompts.append(prompt)
        try:
            if self.error is not None:
                raise self.error
            for chunk in self.chunks:
                if self.chunk_delay:
                    await asyncio.sleep(self.chunk_delay)
                yield chunk
        finally:
            self.closed = True


@dataclass(frozen=True)
class FakeProvider:
    """Provider handing out prebuilt fake services."""

    embedding_service: Any
    description_service: Any
    completion_service: Any

    def build_embedding_service(self, settings: Any) -> Any:
        return self.embedding_service

    def build_description_service(self, settings: Any) -> Any:
        return self.description_service

    def build_completion_service(self, settings: Any) -> Any:
        return self.completion_service


@pytest.fixture
def store(tmp_path):
    """A fresh SQLite thought store."""
    return SQLiteThoughtStore(str(tmp_path / "thoughts.db"))


@pytest.fixture
def embedding_service():
    return FakeEmbeddingService()


@pytest.fixture
def description_service():
    return FakeDescriptionService()


@pytest.fixture
def completion_service():
    return FakeCompletionService()


@pytest.fixture
def provider(embedding_service, description_service, completion_service):
    return FakeProvider(
        embedding_service=embedding_service,
        description_service=description_service,
        completion_service=completion_service,
    )


@pytest.fixture
def rag(provider, store):
    """A ThoughtRAG instance over the fake services and a temp store."""
    return ThoughtRAG.from_stores(provider=provider, thought_store=store, vector_store=store)


@pytest.fixture
def make_thought(store):
    """Factory that stores a thought and returns it.

    Completed thoughts need an ``embedding``; ``age`` shifts created_at into the past.
    """

    def factory(
        *,
        team_id: str = "team-a",
        kind: ThoughtKind = ThoughtKind.DOCUMENT,
        title: str = "",
        description: str = "",
        image_url: str | None = "https://img.example/bike.png",
        embedding: list[float] | None = None,
        ai_description: str | None = None,
        embedding_status: EmbeddingStatus | None = None,
        attempts: int = 0,
        last_attempt_at: datetime | None = None,
        age: timedelta = timedelta(0),
        **kwargs: Any,
    ) -> Thought:
        if embedding_status is None:
            embedding_status = (
                EmbeddingStatus.COMPLETED if embedding is not None else EmbeddingStatus.PENDING
            )
        thought = Thought(
            user_id="user-1",
            team_id=team_id,
            kind=kind,
            title=title,
            description=description,
            image_url=image_url,
            embedding=embedding,
            ai_description=ai_description,
            embedding_status=embedding_status,
            embedding_attempts=attempts,
            last_attempt_at=last_attempt_at,
            created_at=utc_now() - age,
            **kwargs,
        )
        store.put(thought)
        return thought

    return factory
