# src/thoughtrag/configuration/providers/__init__.py
"""Provider configurations for thoughtrag."""

from thoughtrag.configuration.providers.litellm import LiteLLMProvider

__all__ = ["LiteLLMProvider"]
