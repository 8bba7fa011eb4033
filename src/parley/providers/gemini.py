"""Google Gemini ``generateContent`` adapter."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from parley.errors import MissingAPIKeyError
from parley.providers.base import JSON_HEADERS, fallback_text, first, text_or_none
from parley.resolve import gemini_endpoint

if TYPE_CHECKING:
    from parley.options import RequestOptions
    from parley.registry import ProviderConfig

logger = logging.getLogger(__name__)

# RequestOptions field -> generationConfig key
_GENERATION_CONFIG_KEYS: dict[str, str] = {
    "max_tokens": "maxOutputTokens",
    "temperature": "temperature",
    "top_p": "topP",
}


def is_safety_blocked(candidate: Any) -> bool:
    """Return True when a candidate's safety ratings flag it as blocked."""
    if not isinstance(candidate, dict):
        return False
    ratings = candidate.get("safetyRatings")
    if not isinstance(ratings, list):
        return False
    return any(
        isinstance(r, dict)
        and r.get("probability") != "NEGLIGIBLE"
        and bool(r.get("blocked"))
        for r in ratings
    )


def _error_message(error: Any) -> str:
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    try:
        return json.dumps(error)
    except (TypeError, ValueError):
        return str(error)


class GeminiAdapter:
    """Gemini takes the API key in the query string and a ``contents`` body."""

    def authenticate(
        self,
        config: ProviderConfig,
        *,
        endpoint: str | None,
        api_key: str,
        model: str,
    ) -> tuple[str, dict[str, str]]:
        # The URL is always built from the model; endpoint overrides do not apply.
        _ = endpoint
        if not api_key:
            raise MissingAPIKeyError(
                f"API Key Required for {config.name}",
                hint="Set GEMINI_API_KEY or add an apiKey to the gemini settings.",
            )
        return gemini_endpoint(model, api_key), dict(JSON_HEADERS)

    def build_body(
        self,
        prompt: str,
        *,
        model: str,
        options: RequestOptions | None,
    ) -> dict[str, Any]:
        _ = model
        body: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if options is not None:
            generation_config = {
                _GENERATION_CONFIG_KEYS[name]: value
                for name, value in options.generation_params().items()
            }
            if generation_config:
                body["generationConfig"] = generation_config
        return body

    def parse_response(self, body: Any) -> str:
        if isinstance(body, dict):
            candidate = first(body.get("candidates"))
            if isinstance(candidate, dict):
                if is_safety_blocked(candidate):
                    # Flagged content is still returned as-is.
                    logger.warning(
                        "Gemini response potentially blocked due to safety "
                        "settings: %s",
                        candidate.get("safetyRatings"),
                    )
                content = candidate.get("content")
                parts = content.get("parts") if isinstance(content, dict) else None
                part = first(parts)
                if isinstance(part, dict):
                    text = text_or_none(part.get("text"))
                    if text is not None:
                        return text
            if body.get("error"):
                logger.error(
                    "Gemini API returned an error in the response body: %s",
                    body["error"],
                )
                return f"[Error from Gemini: {_error_message(body['error'])}]"
        return fallback_text(body, provider_id="gemini")
