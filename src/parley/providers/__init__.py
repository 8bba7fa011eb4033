"""Provider adapters, selected by provider id."""

from __future__ import annotations

from .base import UNPARSEABLE_RESPONSE, ProviderAdapter, fallback_text
from .gemini import GeminiAdapter
from .openai import OpenAICompatibleAdapter

_OPENAI_COMPATIBLE = OpenAICompatibleAdapter()

# Registry: provider_id -> adapter. A new provider adds one entry here.
ADAPTERS: dict[str, ProviderAdapter] = {
    "gemini": GeminiAdapter(),
    "openai": _OPENAI_COMPATIBLE,
    "lmstudio": _OPENAI_COMPATIBLE,
    "custom": _OPENAI_COMPATIBLE,
}


def get_adapter(provider_id: str) -> ProviderAdapter | None:
    """Return the adapter for *provider_id*, or None if there is none."""
    return ADAPTERS.get(provider_id)


__all__ = [
    "ADAPTERS",
    "UNPARSEABLE_RESPONSE",
    "GeminiAdapter",
    "OpenAICompatibleAdapter",
    "ProviderAdapter",
    "fallback_text",
    "get_adapter",
]
