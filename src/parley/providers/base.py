"""Provider adapter protocol and the shared response fallback."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from parley.options import RequestOptions
    from parley.registry import ProviderConfig

logger = logging.getLogger(__name__)

UNPARSEABLE_RESPONSE = "[Could not parse AI response]"

JSON_HEADERS: dict[str, str] = {"Content-Type": "application/json"}


@runtime_checkable
class ProviderAdapter(Protocol):
    """Per-family strategy: where to send, what to send, how to read back."""

    def authenticate(
        self,
        config: ProviderConfig,
        *,
        endpoint: str | None,
        api_key: str,
        model: str,
    ) -> tuple[str, dict[str, str]]:
        """Return the request URL and headers, or raise ConfigurationError."""
        ...

    def build_body(
        self,
        prompt: str,
        *,
        model: str,
        options: RequestOptions | None,
    ) -> dict[str, Any]:
        """Return the provider request body for a plain-text prompt."""
        ...

    def parse_response(self, body: Any) -> str:
        """Return the answer text from a response body."""
        ...


def first(value: Any) -> Any:
    """Return ``value[0]`` for a non-empty list, else None."""
    if isinstance(value, list) and value:
        return value[0]
    return None


def text_or_none(value: Any) -> str | None:
    """Return *value* when it is a non-empty string."""
    if isinstance(value, str) and value:
        return value
    return None


def fallback_text(body: Any, *, provider_id: str | None = None) -> str:
    """Try the common alternative answer fields, else mark the reply unparseable.

    Order: ``message.content``, ``content``, ``text``.
    """
    logger.warning(
        "Could not extract standard response text for provider %s", provider_id
    )
    if not isinstance(body, dict):
        return UNPARSEABLE_RESPONSE
    message = body.get("message")
    if isinstance(message, dict):
        text = text_or_none(message.get("content"))
        if text is not None:
            return text
    for key in ("content", "text"):
        text = text_or_none(body.get(key))
        if text is not None:
            return text
    return UNPARSEABLE_RESPONSE
