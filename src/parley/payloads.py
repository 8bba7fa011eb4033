"""Multi-part payloads for chatting about a document (text plus page images).

Document parsing lives elsewhere: anything with ``get_text()`` and
``get_page_image(page)`` can feed these builders.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from parley.errors import ConfigurationError, UnknownProviderError
from parley.registry import OPENAI_COMPATIBLE

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions based on the provided "
    "PDF content."
)
DEFAULT_IMAGE_MIME_TYPE = "image/png"

_DATA_URL_RE = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.S
)

ImageInput = bytes | str


@runtime_checkable
class DocumentSource(Protocol):
    """Extracted document content, e.g. a parsed PDF."""

    def get_text(self) -> str:
        """Return the document's text."""
        ...

    def get_page_image(self, page: int) -> bytes:
        """Return one rendered page as PNG bytes."""
        ...


def _image_parts(image: ImageInput) -> tuple[str, str]:
    """Return ``(mime_type, base64_data)`` for raw bytes or a data URL."""
    if isinstance(image, bytes):
        return DEFAULT_IMAGE_MIME_TYPE, base64.b64encode(image).decode("ascii")
    match = _DATA_URL_RE.match(image)
    if match is None:
        raise ConfigurationError(
            "Image strings must be base64 data URLs",
            hint="Pass PNG bytes or 'data:image/png;base64,...'.",
        )
    data = match.group("data")
    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConfigurationError("Image data URL is not valid base64") from e
    return match.group("mime"), data


def _warn_if_not_vision_model(provider_id: str, model: str) -> None:
    # Name heuristics only; the request is sent regardless.
    if provider_id == "gemini":
        if not any(tag in model for tag in ("1.5", "flash", "pro")):
            logger.warning(
                'Selected Gemini model "%s" might not support image input. '
                "Consider Gemini 1.5 Flash/Pro.",
                model,
            )
    elif provider_id == "openai":
        if "gpt-4" not in model and "vision" not in model:
            logger.warning(
                'Selected OpenAI model "%s" might not support image input. '
                "Consider GPT-4 Turbo/GPT-4o.",
                model,
            )
    else:
        logger.warning(
            "Sending images to %s endpoint. Ensure the model supports "
            "multi-modal input in OpenAI format.",
            provider_id,
        )


def build_document_payload(
    provider_id: str,
    question: str,
    *,
    model: str,
    text: str | None = None,
    images: Sequence[ImageInput] = (),
    system_prompt: str = DEFAULT_SYSTEM_PROMPT,
) -> dict[str, Any]:
    """Build a provider body carrying document context and a user question.

    Content order is: document text, page images, then the question.
    """
    if provider_id != "gemini" and provider_id not in OPENAI_COMPATIBLE:
        raise UnknownProviderError(f"Unsupported AI service: {provider_id}")
    if not text and not images:
        raise ConfigurationError(
            "No document content (text or images) available to chat about",
            hint="Pass text=..., images=[...], or both.",
        )

    encoded = [_image_parts(image) for image in images]
    if encoded:
        _warn_if_not_vision_model(provider_id, model)

    if provider_id == "gemini":
        parts: list[dict[str, Any]] = []
        if text:
            parts.append({"text": f"Context from PDF:\n{text}"})
        for mime_type, data in encoded:
            parts.append({"inline_data": {"mime_type": mime_type, "data": data}})
        parts.append({"text": f"User Query: {question}"})
        return {"contents": [{"parts": parts}]}

    content: list[dict[str, Any]] = []
    if text:
        content.append({"type": "text", "text": f"Context from PDF:\n{text}"})
    for mime_type, data in encoded:
        content.append(
            {
                "type": "image_url",
                "image_url": {"url": f"data:{mime_type};base64,{data}"},
            }
        )
    content.append({"type": "text", "text": f"User Query: {question}"})
    return {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": content},
        ],
    }


def payload_from_document(
    provider_id: str,
    question: str,
    document: DocumentSource,
    *,
    model: str,
    pages: Iterable[int] = (),
    include_text: bool = True,
    system_prompt: str = DEFAULT_SYSTEM_PROMPT,
) -> dict[str, Any]:
    """Pull text and page images from *document* and build the payload."""
    text = document.get_text() if include_text else None
    images = [document.get_page_image(page) for page in pages]
    return build_document_payload(
        provider_id,
        question,
        model=model,
        text=text,
        images=images,
        system_prompt=system_prompt,
    )
