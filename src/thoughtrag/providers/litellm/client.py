# src/thoughtrag/providers/litellm/client.py
"""LiteLLM implementations of the embedding, description and completion services."""

from collections.abc import AsyncIterator
from typing import Any

import litellm

from thoughtrag.errors import UpstreamError
from thoughtrag.providers.base import CompletionService, DescriptionService, EmbeddingService
from thoughtrag.providers.litellm.models import ChatModels, EmbeddingModels
from thoughtrag.streaming import encode_done, encode_event

litellm.suppress_debug_info = True

DESCRIPTION_PROMPT = "Provide a detailed, concise description of this image."


def _chunk_to_dict(chunk: Any) -> dict[str, Any]:
    """Convert a LiteLLM stream chunk into a plain chat-completion-chunk dict."""
    if isinstance(chunk, dict):
        return chunk
    return chunk.model_dump(exclude_none=True)


class LiteLLMEmbeddingService(EmbeddingService):
    """LiteLLM-based embedding service.

    Example:
        from thoughtrag.providers.litellm import EmbeddingModels, LiteLLMEmbeddingService

        service = LiteLLMEmbeddingService(model=EmbeddingModels.TEXT_3_SMALL)
        vector = await service.embed("a red bicycle")
    """

    def __init__(
        self,
        model: str = EmbeddingModels.TEXT_3_SMALL,
        num_retries: int = 3,
        timeout: float | None = None,
        api_key: str | None = None,
    ) -> None:
        """Initialize the embedding service.

        Args:
            model: LiteLLM embedding model identifier.
            num_retries: Retries on transient errors. LiteLLM handles
                        exponential backoff automatically.
            timeout: Per-request timeout in seconds passed to LiteLLM.
            api_key: Optional API key (otherwise read by LiteLLM from env).
        """
        self.model = model
        self.num_retries = num_retries
        self.timeout = timeout
        self.api_key = api_key

    async def embed(self, text: str) -> list[float]:
        """Generate an embedding using LiteLLM."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "input": [text],
            "num_retries": self.num_retries,
        }
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        if self.api_key:
            kwargs["api_key"] = self.api_key

        response = await litellm.aembedding(**kwargs)

        if not response.data:
            raise UpstreamError(
                f"Embedding model {self.model} returned no data", service="embedding"
            )
        # Sort by index to maintain order
        sorted_data = sorted(response.data, key=lambda x: x["index"])
        return [float(v) for v in sorted_data[0]["embedding"]]


class LiteLLMDescriptionService(DescriptionService):
    """Describe images with a vision-capable chat model through LiteLLM."""

    def __init__(
        self,
        model: str = ChatModels.GPT_4O,
        num_retries: int = 3,
        timeout: float | None = None,
        api_key: str | None = None,
        prompt: str | None = None,
        max_tokens: int = 300,
    ) -> None:
        self.model = model
        self.num_retries = num_retries
        self.timeout = timeout
        self.api_key = api_key
        self.prompt = prompt or DESCRIPTION_PROMPT
        self.max_tokens = max_tokens

    async def describe(self, image_url: str) -> str:
        """Generate a description of the image at *image_url*."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": self.prompt},
                        {"type": "image_url", "image_url": {"url": image_url}},
                    ],
                }
            ],
            "max_tokens": self.max_tokens,
            "drop_params": True,
            "num_retries": self.num_retries,
        }
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        if self.api_key:
            kwargs["api_key"] = self.api_key

        response = await litellm.acompletion(**kwargs)

        if not response.choices:
            raise UpstreamError(f"Vision model {self.model} returned no choices", "description")
        content = (response.choices[0].message.content or "").strip()
        if not content:
            raise UpstreamError(
                f"Vision model {self.model} returned an empty description", "description"
            )
        return content


class LiteLLMCompletionService(CompletionService):
    """LiteLLM-based chat completion service.

    Example:
        service = LiteLLMCompletionService(model=ChatModels.GPT_4O)
        text = await service.complete("Say hello")

        async for frame in service.stream("Say hello"):
            ...  # b'data: {...}\\n\\n'
    """

    def __init__(
        self,
        model: str = ChatModels.GPT_4O,
        num_retries: int = 3,
        timeout: float | None = None,
        api_key: str | None = None,
        temperature: float | None = None,
    ) -> None:
        self.model = model
        self.num_retries = num_retries
        self.timeout = timeout
        self.api_key = api_key
        self.temperature = temperature

    def _completion_kwargs(self, prompt: str) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "drop_params": True,
            "num_retries": self.num_retries,
        }
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        if self.api_key:
            kwargs["api_key"] = self.api_key
        return kwargs

    async def complete(self, prompt: str) -> str:
        """Generate a whole completion using LiteLLM."""
        response = await litellm.acompletion(**self._completion_kwargs(prompt))

        if not response.choices:
            raise UpstreamError(f"LLM returned no choices for model {self.model}", "completion")
        content = response.choices[0].message.content
        if content is None:
            raise UpstreamError(f"LLM returned None content for model {self.model}", "completion")
        return str(content)

    async def stream(self, prompt: str) -> AsyncIterator[bytes]:
        """Stream a completion as server-sent-event frames."""
        response = await litellm.acompletion(**self._completion_kwargs(prompt), stream=True)
        try:
            async for chunk in response:
                yield encode_event(_chunk_to_dict(chunk))
            yield encode_done()
        finally:
            # Releases the HTTP stream when the consumer stops early
            aclose = getattr(response, "aclose", None)
            if aclose is not None:
                await aclose()
