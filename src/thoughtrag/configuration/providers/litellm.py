# src/thoughtrag/configuration/providers/litellm.py
"""LiteLLM provider configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from thoughtrag.providers import CompletionService, DescriptionService, EmbeddingService
    from thoughtrag.settings import Settings


@dataclass(frozen=True)
class LiteLLMProvider:
    """Provider configuration using LiteLLM for completion, vision and embedding calls.

    LiteLLM provides a unified interface to 100+ model providers including
    OpenAI, Anthropic, Gemini and local Ollama models.

    Args:
        llm: LiteLLM model identifier for answers.
             Examples: "openai/gpt-4o", "anthropic/claude-sonnet-4-5-20250929"
        embedding: LiteLLM model identifier for embeddings.
                   Examples: "openai/text-embedding-3-small"
        vision: LiteLLM model identifier for image descriptions. Must accept
                image inputs. Defaults to ``llm``.
        api_key: Optional API key passed to every call (otherwise LiteLLM
                 reads the provider's key from the environment).

    Example:
        provider = LiteLLMProvider(
            llm="openai/gpt-4o",
            embedding="openai/text-embedding-3-small",
        )

        # Cheaper answers, stronger vision
        provider = LiteLLMProvider(
            llm="openai/gpt-4o-mini",
            embedding="openai/text-embedding-3-small",
            vision="openai/gpt-4o",
        )
    """

    llm: str
    embedding: str
    vision: str | None = None
    api_key: str | None = None

    @property
    def vision_model(self) -> str:
        return self.vision or self.llm

    def build_embedding_service(self, settings: Settings) -> EmbeddingService:
        """Build a LiteLLMEmbeddingService.

        Args:
            settings: Settings containing num_retries and embedding_timeout.
        """
        from thoughtrag.providers.litellm import LiteLLMEmbeddingService

        return LiteLLMEmbeddingService(
            model=self.embedding,
            num_retries=settings.num_retries,
            timeout=settings.embedding_timeout,
            api_key=self.api_key,
        )

    def build_description_service(self, settings: Settings) -> DescriptionService:
        """Build a LiteLLMDescriptionService on the vision model."""
        from thoughtrag.providers.litellm import LiteLLMDescriptionService

        return LiteLLMDescriptionService(
            model=self.vision_model,
            num_retries=settings.num_retries,
            timeout=settings.description_timeout,
            api_key=self.api_key,
            prompt=settings.description_prompt,
            max_tokens=settings.description_max_tokens,
        )

    def build_completion_service(self, settings: Settings) -> CompletionService:
        """Build a LiteLLMCompletionService for answers."""
        from thoughtrag.providers.litellm import LiteLLMCompletionService

        return LiteLLMCompletionService(
            model=self.llm,
            num_retries=settings.num_retries,
            timeout=settings.completion_timeout,
            api_key=self.api_key,
            temperature=settings.completion_temperature,
        )
