# src/thoughtrag/configuration/__init__.py
"""Configuration objects for thoughtrag.

Instead of factory methods, you pass configuration objects that know how to
build their components.

Provider configurations (build model services):
- LiteLLMProvider: Uses LiteLLM for completion, vision and embedding calls

Storage configurations (build data stores):
- LocalStorage: A single SQLite database for thoughts and their embeddings

Example:
    from thoughtrag import LiteLLMProvider, LocalStorage, ThoughtRAG

    rag = ThoughtRAG(
        provider=LiteLLMProvider(llm="openai/gpt-4o", embedding="openai/text-embedding-3-small"),
        storage=LocalStorage("./data"),
    )
"""

from thoughtrag.configuration.base import ProviderConfig, StorageConfig
from thoughtrag.configuration.providers import LiteLLMProvider
from thoughtrag.configuration.storage import LocalStorage

__all__ = [
    "ProviderConfig",
    "StorageConfig",
    "LiteLLMProvider",
    "LocalStorage",
]
