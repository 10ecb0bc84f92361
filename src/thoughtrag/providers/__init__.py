"""Model service providers for thoughtrag.

This module contains the service abstractions the pipelines depend on:
- EmbeddingService: text -> fixed-length vector
- DescriptionService: image URL -> natural-language description
- CompletionService: prompt -> answer, blocking or as an SSE byte stream
- LiteLLM implementations of all three

Usage:
    from thoughtrag.providers import EmbeddingService, CompletionService
    from thoughtrag.providers.litellm import LiteLLMCompletionService, ChatModels
"""

from thoughtrag.providers.base import (
    CompletionService,
    DescriptionService,
    EmbeddingService,
    guard_upstream,
)
from thoughtrag.providers.litellm import (
    ChatModels,
    EmbeddingModels,
    LiteLLMCompletionService,
    LiteLLMDescriptionService,
    LiteLLMEmbeddingService,
)

__all__ = [
    # ABCs
    "EmbeddingService",
    "DescriptionService",
    "CompletionService",
    "guard_upstream",
    # Model constants
    "ChatModels",
    "EmbeddingModels",
    # LiteLLM services
    "LiteLLMEmbeddingService",
    "LiteLLMDescriptionService",
    "LiteLLMCompletionService",
]
