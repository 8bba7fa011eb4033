"""OpenAI chat-completions adapter (OpenAI, LM Studio, custom endpoints)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from parley.errors import MissingEndpointError
from parley.providers.base import JSON_HEADERS, fallback_text, first, text_or_none
from parley.resolve import normalize_openai_endpoint

if TYPE_CHECKING:
    from parley.options import RequestOptions
    from parley.registry import ProviderConfig


class OpenAICompatibleAdapter:
    """Any server accepting ``messages`` and answering ``choices[]``."""

    def authenticate(
        self,
        config: ProviderConfig,
        *,
        endpoint: str | None,
        api_key: str,
        model: str,
    ) -> tuple[str, dict[str, str]]:
        _ = model
        if not endpoint:
            raise MissingEndpointError(
                f"API Endpoint is not set for {config.name} in settings "
                "and no default is available.",
                hint=f"Set an endpoint for {config.id}, e.g. https://host/v1.",
            )
        headers = dict(JSON_HEADERS)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return normalize_openai_endpoint(endpoint), headers

    def build_body(
        self,
        prompt: str,
        *,
        model: str,
        options: RequestOptions | None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
        }
        if options is not None:
            body.update(options.generation_params())
        return body

    def parse_response(self, body: Any) -> str:
        if isinstance(body, dict):
            choice = first(body.get("choices"))
            if isinstance(choice, dict):
                message = choice.get("message")
                if isinstance(message, dict):
                    text = text_or_none(message.get("content"))
                    if text is not None:
                        return text
                # Legacy completions shape.
                text = text_or_none(choice.get("text"))
                if text is not None:
                    return text
        return fallback_text(body, provider_id="openai-compatible")
