"""
Provider factory.
"""
from __future__ import annotations

from typing import Optional

from config import settings
from generative.base import LLMProvider


def get_provider(provider_name: Optional[str] = None) -> LLMProvider:
    """Factory — returns the configured LLM provider."""
    provider_name = provider_name or settings.LLM_PROVIDER
    if provider_name == "gemini":
        from generative.gemini import GeminiProvider
        return GeminiProvider()
    else:
        raise ValueError(f"Unknown LLM provider: {provider_name}")
