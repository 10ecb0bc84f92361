# src/thoughtrag/providers/base.py
"""Abstract base classes for the model services used by the pipelines."""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable
from typing import TypeVar

from thoughtrag.errors import ThoughtRAGError, UpstreamError

T = TypeVar("T")


class EmbeddingService(ABC):
    """Abstract base class for text embedding providers.

    Implementations turn text into a fixed-length float vector. They hold no
    per-call state, so one instance can serve concurrent requests.

    Example:
        class MyEmbeddingService(EmbeddingService):
            async def embed(self, text):
                return await my_api.embed(text)
    """

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text.

        Raises:
            UpstreamError: If the provider call fails.
        """
        ...


class DescriptionService(ABC):
    """Abstract base class for vision models that describe an image."""

    @abstractmethod
    async def describe(self, image_url: str) -> str:
        """Produce a natural-language description of the image at *image_url*.

        Implementations must treat an empty or whitespace-only result as a
        failure and raise UpstreamError rather than return it.
        """
        ...


class CompletionService(ABC):
    """Abstract base class for chat completion providers.

    Two response modes are supported:
    - complete(): wait for the whole answer and return it as text.
    - stream(): yield the answer as server-sent-event bytes, each frame
      ``data: <chat-completion-chunk json>\\n\\n`` and a final
      ``data: [DONE]\\n\\n``. The bytes are decoded by StreamRelay.
    """

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Generate a whole completion for a single user prompt."""
        ...

    @abstractmethod
    def stream(self, prompt: str) -> AsyncIterator[bytes]:
        """Generate a completion as a server-sent-event byte stream."""
        ...


async def guard_upstream(
    awaitable: Awaitable[T],
    *,
    service: str,
    timeout: float | None = None,
) -> T:
    """Await an upstream call, normalising every failure to UpstreamError.

    Args:
        awaitable: The pending upstream call.
        service: Service name reported on the error.
        timeout: Seconds to wait before giving up. None waits indefinitely.

    Returns:
        The awaited result.

    Raises:
        UpstreamError: On any exception or on timeout.
    """
    try:
        if timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout)
    except TimeoutError as e:
        raise UpstreamError(f"{service} call timed out after {timeout}s", service=service) from e
    except UpstreamError as e:
        if e.service is None:
            e.service = service
        raise
    except ThoughtRAGError:
        raise
    except Exception as e:
        raise UpstreamError(f"{service} call failed: {e}", service=service) from e
