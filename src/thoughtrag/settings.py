# src/thoughtrag/settings.py
"""Configuration management for thoughtrag.

This module contains behavioral settings that apply regardless of which
model provider is used. Settings are passed programmatically - the library
does not read from environment variables.

For applications that want env-based config, read env vars at the
application layer (see thoughtrag.config) and pass values explicitly.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from thoughtrag.ingestor import RetryPolicy

PresetName = Literal["chat-answering", "interactive-search"]


class RetrievalPreset(BaseModel):
    """Similarity search parameters for one retrieval call site."""

    match_threshold: float = Field(ge=0.0, le=1.0)
    match_count: int = Field(gt=0)
    description: str = ""


# Retrieval presets. The two call sites retrieve for different purposes and
# deliberately use different parameters:
# - "chat-answering": context for a grounded answer. Every match is passed to
#   the model; weak context is handled by the prompt's fallback instruction.
# - "interactive-search": results shown to a person. Only strong matches.
RETRIEVAL_PRESETS: dict[str, RetrievalPreset] = {
    "chat-answering": RetrievalPreset(
        match_threshold=0.0,
        match_count=5,
        description="Top 5 matches of any similarity, used to ground answers",
    ),
    "interactive-search": RetrievalPreset(
        match_threshold=0.7,
        match_count=10,
        description="Up to 10 matches with similarity >= 0.7, shown in search results",
    ),
}

# Timeout profile definitions
TIMEOUT_PROFILES: dict[str, dict[str, Any]] = {
    "interactive": {
        "description_timeout": 30.0,
        "embedding_timeout": 10.0,
        "completion_timeout": 30.0,
        "stream_read_timeout": 15.0,
        "search_timeout": 10.0,
        "num_retries": 2,
    },
    "patient": {
        "description_timeout": 120.0,
        "embedding_timeout": 60.0,
        "completion_timeout": 180.0,
        "stream_read_timeout": 60.0,
        "search_timeout": 30.0,
        "num_retries": 5,
    },
}


def get_preset(name: str) -> RetrievalPreset:
    """Look up a retrieval preset by name."""
    if name not in RETRIEVAL_PRESETS:
        raise ValueError(
            f"Unknown retrieval preset '{name}'. Available presets: {list(RETRIEVAL_PRESETS.keys())}"
        )
    return RETRIEVAL_PRESETS[name]


class Settings(BaseModel):
    """Behavioral settings for thoughtrag.

    Example:
        settings = Settings(max_concurrent_ingestions=2)

        # Or use a timeout profile
        settings = Settings.with_profile("patient")
    """

    # Retrieval
    chat_preset: PresetName = "chat-answering"
    search_preset: PresetName = "interactive-search"
    match_threshold: float | None = Field(default=None, ge=0.0, le=1.0)  # Overrides both presets
    match_count: int | None = Field(default=None, gt=0)  # Overrides both presets

    # Prompts
    grounding_prompt: str | None = None
    description_prompt: str | None = None
    description_max_tokens: int = 300
    completion_temperature: float | None = None

    # Timeouts (seconds, None = wait indefinitely)
    description_timeout: float | None = 60.0
    embedding_timeout: float | None = 30.0
    completion_timeout: float | None = 120.0
    stream_read_timeout: float | None = 30.0
    search_timeout: float | None = 30.0

    # Retry configuration (LiteLLM handles transport-level retries)
    num_retries: int = 3

    # Ingestion retry policy
    max_embedding_attempts: int | None = 5
    retry_initial_delay: float = 2.0
    retry_backoff_multiplier: float = 2.0
    retry_max_delay: float = 60.0

    # Concurrency for scheduled ingestion
    max_concurrent_ingestions: int = 4

    @classmethod
    def with_profile(
        cls,
        profile: Literal["interactive", "patient"],
        **overrides: Any,
    ) -> Settings:
        """Create Settings with a timeout profile.

        Profiles bundle timeouts for different deployments:
        - "interactive": Short timeouts for user-facing calls
        - "patient": Long timeouts for slow or local models

        Args:
            profile: The timeout profile to use.
            **overrides: Additional settings to override profile defaults.

        Returns:
            Settings instance with profile values applied.
        """
        if profile not in TIMEOUT_PROFILES:
            raise ValueError(
                f"Unknown profile '{profile}'. "
                f"Available profiles: {list(TIMEOUT_PROFILES.keys())}"
            )

        profile_settings: dict[str, Any] = TIMEOUT_PROFILES[profile].copy()
        profile_settings.update(overrides)
        return cls(**profile_settings)

    def _resolve(self, name: str) -> RetrievalPreset:
        preset = get_preset(name)
        updates: dict[str, Any] = {}
        if self.match_threshold is not None:
            updates["match_threshold"] = self.match_threshold
        if self.match_count is not None:
            updates["match_count"] = self.match_count
        return preset.model_copy(update=updates) if updates else preset

    def resolve_chat_preset(self) -> RetrievalPreset:
        """Retrieval parameters for grounding answers."""
        return self._resolve(self.chat_preset)

    def resolve_search_preset(self) -> RetrievalPreset:
        """Retrieval parameters for interactive search."""
        return self._resolve(self.search_preset)

    def build_retry_policy(self) -> RetryPolicy:
        """Build the ingestion RetryPolicy from settings."""
        return RetryPolicy(
            max_attempts=self.max_embedding_attempts,
            initial_delay=self.retry_initial_delay,
            multiplier=self.retry_backoff_multiplier,
            max_delay=self.retry_max_delay,
        )
