"""thoughtrag - retrieval-augmented answers over a team's captured thoughts.

Thoughts (questions, answers and documents captured as an image plus text)
are described by a vision model, embedded, and searched by similarity to
ground chat answers, blocking or streamed.

Quick Start (LiteLLM + Local Storage):
    from thoughtrag import LiteLLMProvider, LocalStorage, ThoughtRAG

    rag = ThoughtRAG(
        provider=LiteLLMProvider(llm="openai/gpt-4o", embedding="openai/text-embedding-3-small"),
        storage=LocalStorage("./data"),
    )

    # Capture and embed
    thought = rag.capture(user_id="u1", team_id="team-a", image_url="https://.../bike.png")
    await rag.ingestion_pipeline().ingest(thought.id)

    # Ask
    pipeline = rag.query_pipeline()
    result = await pipeline.answer("Where is the red bicycle?", ["team-a"])
"""

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("thoughtrag")
except PackageNotFoundError:
    # Source-tree fallback (e.g. running tests without installing the wheel).
    import tomllib
    from pathlib import Path

    def _read_version_from_pyproject() -> str | None:
        for parent in Path(__file__).resolve().parents:
            pyproject = parent / "pyproject.toml"
            if pyproject.exists():
                data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
                found = data.get("project", {}).get("version")
                return str(found) if found is not None else None
        return None

    __version__ = _read_version_from_pyproject() or "unknown"

# Chat
from thoughtrag.chat import ChatSession, Message, MessageRole

# Configuration objects
from thoughtrag.configuration import (
    LiteLLMProvider,
    LocalStorage,
    ProviderConfig,
    StorageConfig,
)

# Errors
from thoughtrag.errors import (
    NotFoundError,
    RetryLimitExceededError,
    StatusWriteError,
    StreamParseError,
    ThoughtRAGError,
    UpstreamError,
    ValidationError,
)

# Change publishing
from thoughtrag.events import ChangeBus, ChangePublisher, NullPublisher

# Pipelines
from thoughtrag.ingestor import IngestionPipeline, RetryPolicy

# Core models
from thoughtrag.models import (
    AnswerResult,
    EmbeddingStatus,
    QueryRequest,
    RetrievedMatch,
    Thought,
    ThoughtChange,
    ThoughtKind,
    ThoughtStatus,
)

# Provider ABCs
from thoughtrag.providers import CompletionService, DescriptionService, EmbeddingService
from thoughtrag.retriever import AnswerHandle, QueryPipeline
from thoughtrag.scheduler import IngestionScheduler

# Configuration
from thoughtrag.settings import RETRIEVAL_PRESETS, RetrievalPreset, Settings

# Storage ABCs
from thoughtrag.stores import SQLiteThoughtStore, ThoughtStore, VectorStore
from thoughtrag.streaming import StreamRelay

# Central configuration
from thoughtrag.thoughtrag import ThoughtRAG

__all__ = [
    # Version
    "__version__",
    # Models
    "Thought",
    "ThoughtKind",
    "ThoughtStatus",
    "EmbeddingStatus",
    "ThoughtChange",
    "QueryRequest",
    "RetrievedMatch",
    "AnswerResult",
    # Errors
    "ThoughtRAGError",
    "ValidationError",
    "NotFoundError",
    "UpstreamError",
    "StreamParseError",
    "RetryLimitExceededError",
    "StatusWriteError",
    # Config
    "Settings",
    "RetrievalPreset",
    "RETRIEVAL_PRESETS",
    # Configuration objects
    "ProviderConfig",
    "StorageConfig",
    "LiteLLMProvider",
    "LocalStorage",
    # Storage
    "ThoughtStore",
    "VectorStore",
    "SQLiteThoughtStore",
    # Provider ABCs
    "EmbeddingService",
    "DescriptionService",
    "CompletionService",
    # Change publishing
    "ChangePublisher",
    "ChangeBus",
    "NullPublisher",
    # Pipelines
    "IngestionPipeline",
    "RetryPolicy",
    "IngestionScheduler",
    "QueryPipeline",
    "AnswerHandle",
    "StreamRelay",
    # Chat
    "ChatSession",
    "Message",
    "MessageRole",
    # Central configuration
    "ThoughtRAG",
]
