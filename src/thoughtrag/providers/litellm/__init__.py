"""LiteLLM provider services for thoughtrag.

This module contains LiteLLM-based service implementations:
- LiteLLMEmbeddingService: Embeddings using LiteLLM
- LiteLLMDescriptionService: Image descriptions from a vision-capable model
- LiteLLMCompletionService: Chat completions, blocking or streamed
- ChatModels: Curated chat model constants
- EmbeddingModels: Curated embedding model constants

Usage:
    from thoughtrag.providers.litellm import ChatModels, LiteLLMCompletionService

    service = LiteLLMCompletionService(model=ChatModels.GPT_4O)
"""

from thoughtrag.providers.litellm.client import (
    DESCRIPTION_PROMPT,
    LiteLLMCompletionService,
    LiteLLMDescriptionService,
    LiteLLMEmbeddingService,
)
from thoughtrag.providers.litellm.models import ChatModels, EmbeddingModels

__all__ = [
    # Model constants
    "ChatModels",
    "EmbeddingModels",
    # Services
    "DESCRIPTION_PROMPT",
    "LiteLLMCompletionService",
    "LiteLLMDescriptionService",
    "LiteLLMEmbeddingService",
]
