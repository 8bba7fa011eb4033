"""Answer-text extraction from provider response bodies."""

from __future__ import annotations

import logging
from typing import Any

from parley.providers import fallback_text, get_adapter
from parley.providers.base import UNPARSEABLE_RESPONSE

logger = logging.getLogger(__name__)


def extract_text(raw_body: Any, provider_id: str) -> str:
    """Return the answer text in *raw_body*; never raises.

    Unknown providers and unexpected shapes go through the generic fallback,
    which returns ``"[Could not parse AI response]"`` when nothing fits.
    """
    adapter = get_adapter(provider_id)
    try:
        if adapter is None:
            return fallback_text(raw_body, provider_id=provider_id)
        return adapter.parse_response(raw_body)
    except Exception:
        logger.exception("Response extraction failed for provider %s", provider_id)
        return UNPARSEABLE_RESPONSE
