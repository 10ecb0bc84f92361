# src/thoughtrag/providers/litellm/models.py
"""Curated model constants for the LiteLLM provider.

These are convenience constants for IDE autocomplete. Any valid LiteLLM
model string can be passed directly instead.

Example:
    from thoughtrag.providers.litellm import ChatModels, LiteLLMCompletionService

    completion = LiteLLMCompletionService(model=ChatModels.GPT_4O)
"""


class ChatModels:
    """Chat models for answering and, when vision-capable, image description."""

    # OpenAI
    GPT_4O = "openai/gpt-4o"
    GPT_4O_MINI = "openai/gpt-4o-mini"
    GPT_5_MINI = "openai/gpt-5-mini"

    # Anthropic - Claude 4.5 Series
    CLAUDE_SONNET_45 = "anthropic/claude-sonnet-4-5-20250929"
    CLAUDE_HAIKU_45 = "anthropic/claude-haiku-4-5-20251001"

    # Google Gemini
    GEMINI_3_FLASH = "gemini/gemini-3-flash-preview"

    # Local (Ollama)
    OLLAMA_LLAVA = "ollama/llava"
    OLLAMA_LLAMA32 = "ollama/llama3.2"


class EmbeddingModels:
    """Embedding models for EmbeddingService implementations."""

    # OpenAI
    TEXT_3_SMALL = "openai/text-embedding-3-small"
    TEXT_3_LARGE = "openai/text-embedding-3-large"

    # Google Gemini
    GEMINI_EMBEDDING_001 = "gemini/gemini-embedding-001"

    # Local (Ollama)
    OLLAMA_NOMIC = "ollama/nomic-embed-text"
