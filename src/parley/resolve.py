"""Pure resolution rules: which model, key, and endpoint a request uses.

Every call site (``prepare``, connection tests, document chat) goes through
these functions so precedence is decided in exactly one place.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import quote

from parley.registry import CUSTOM_MODEL

if TYPE_CHECKING:
    from parley.options import RequestOptions
    from parley.registry import ProviderConfig
    from parley.settings import ProviderSettings

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
OPENAI_API_VERSION_SEGMENT = "/v1"
CHAT_COMPLETIONS_PATH = "/chat/completions"


def resolve_model(
    options: RequestOptions | None,
    settings: ProviderSettings,
    config: ProviderConfig,
) -> str:
    """Return the model id a request should use.

    Precedence: explicit option, then user setting, then provider default.
    The sentinel ``"custom"`` resolves to ``settings.custom_model``; when that
    is empty the provider default is used and a warning is logged.
    """
    explicit = options.model if options is not None else None
    model = explicit or settings.model or config.default_model
    if model == CUSTOM_MODEL:
        return resolve_custom_model(settings.custom_model, config)
    return model


def resolve_custom_model(custom_model: str | None, config: ProviderConfig) -> str:
    """Resolve the ``"custom"`` sentinel against a custom model name."""
    if custom_model:
        return custom_model
    logger.warning(
        "Custom model selected for %s but no custom model name set. "
        "Falling back to default: %s",
        config.id,
        config.default_model,
    )
    return config.default_model


def resolve_api_key(settings: ProviderSettings) -> str:
    """Return the configured API key, or an empty string."""
    return settings.api_key or ""


def resolve_endpoint(settings: ProviderSettings, config: ProviderConfig) -> str | None:
    """Return the settings override, else the provider default, else None."""
    return settings.endpoint or config.default_endpoint or None


def normalize_openai_endpoint(endpoint: str) -> str:
    """Make an OpenAI-compatible base URL end in exactly one completions path.

    >>> normalize_openai_endpoint("http://localhost:1234/v1/")
    'http://localhost:1234/v1/chat/completions'
    >>> normalize_openai_endpoint("https://api.example.com")
    'https://api.example.com/v1/chat/completions'
    """
    url = endpoint.strip().rstrip("/")
    if url.endswith(CHAT_COMPLETIONS_PATH):
        return url
    if url.endswith(OPENAI_API_VERSION_SEGMENT):
        return url + CHAT_COMPLETIONS_PATH
    return url + OPENAI_API_VERSION_SEGMENT + CHAT_COMPLETIONS_PATH


def gemini_endpoint(model: str, api_key: str) -> str:
    """Build the Gemini ``generateContent`` URL with the key in the query."""
    return (
        f"{GEMINI_BASE_URL}/models/{quote(model, safe='-._~/')}:generateContent"
        f"?key={quote(api_key, safe='')}"
    )
