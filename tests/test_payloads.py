"""Document-chat payload builders."""

from __future__ import annotations

import base64
import logging

import pytest

from parley.errors import ConfigurationError, UnknownProviderError
from parley.payloads import (
    DEFAULT_SYSTEM_PROMPT,
    DocumentSource,
    build_document_payload,
    payload_from_document,
)
from tests.helpers import FakeDocument

pytestmark = pytest.mark.unit

PNG = b"\x89PNG\r\n\x1a\n-fake"
PNG_B64 = base64.b64encode(PNG).decode("ascii")


def test_gemini_payload_orders_text_images_question() -> None:
    body = build_document_payload(
        "gemini", "What changed?", model="gemini-1.5-flash", text="Doc", images=[PNG]
    )

    assert body == {
        "contents": [
            {
                "parts": [
                    {"text": "Context from PDF:\nDoc"},
                    {"inline_data": {"mime_type": "image/png", "data": PNG_B64}},
                    {"text": "User Query: What changed?"},
                ]
            }
        ]
    }


def test_openai_payload_has_system_prompt_and_data_urls() -> None:
    body = build_document_payload(
        "openai", "Explain", model="gpt-4o", text="Doc", images=[PNG]
    )

    assert body["model"] == "gpt-4o"
    assert body["messages"][0] == {"role": "system", "content": DEFAULT_SYSTEM_PROMPT}
    assert body["messages"][1]["content"] == [
        {"type": "text", "text": "Context from PDF:\nDoc"},
        {
            "type": "image_url",
            "image_url": {"url": f"data:image/png;base64,{PNG_B64}"},
        },
        {"type": "text", "text": "User Query: Explain"},
    ]


def test_text_only_payload_skips_vision_warning(
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING, logger="parley.payloads"):
        body = build_document_payload("lmstudio", "Q", model="local", text="Doc")

    assert [p["type"] for p in body["messages"][1]["content"]] == ["text", "text"]
    assert caplog.text == ""


def test_data_url_images_keep_their_mime_type() -> None:
    url = f"data:image/jpeg;base64,{PNG_B64}"

    body = build_document_payload("gemini", "Q", model="gemini-pro", images=[url])

    inline = body["contents"][0]["parts"][0]["inline_data"]
    assert inline == {"mime_type": "image/jpeg", "data": PNG_B64}


@pytest.mark.parametrize(
    "image", ["https://example.com/page.png", "data:image/png;base64,@@not-b64@@"]
)
def test_invalid_image_strings_are_rejected(image: str) -> None:
    with pytest.raises(ConfigurationError):
        build_document_payload("openai", "Q", model="gpt-4o", images=[image])


def test_empty_document_is_rejected() -> None:
    with pytest.raises(ConfigurationError) as exc:
        build_document_payload("openai", "Q", model="gpt-4o", text="", images=[])

    assert "No document content" in str(exc.value)


def test_unknown_provider_is_rejected() -> None:
    with pytest.raises(UnknownProviderError):
        build_document_payload("anthropic", "Q", model="claude", text="Doc")


@pytest.mark.parametrize(
    ("provider_id", "model", "warns"),
    [
        ("gemini", "gemini-1.5-flash", False),
        ("gemini", "gemini-1.0", True),
        ("openai", "gpt-4o", False),
        ("openai", "gpt-3.5-turbo", True),
        ("lmstudio", "llava", True),
    ],
)
def test_vision_model_warning(
    caplog: pytest.LogCaptureFixture, provider_id: str, model: str, warns: bool
) -> None:
    with caplog.at_level(logging.WARNING, logger="parley.payloads"):
        build_document_payload(provider_id, "Q", model=model, images=[PNG])

    assert bool(caplog.records) is warns


def test_payload_from_document_reads_requested_pages() -> None:
    document = FakeDocument(pages={1: PNG, 2: PNG})

    body = payload_from_document(
        "openai", "Q", document, model="gpt-4o", pages=[2, 1]
    )

    assert isinstance(document, DocumentSource)
    assert document.page_requests == [2, 1]
    kinds = [p["type"] for p in body["messages"][1]["content"]]
    assert kinds == ["text", "image_url", "image_url", "text"]


def test_payload_from_document_can_skip_text() -> None:
    body = payload_from_document(
        "gemini",
        "Q",
        FakeDocument(),
        model="gemini-pro",
        include_text=False,
        pages=[1],
    )

    parts = body["contents"][0]["parts"]
    assert "inline_data" in parts[0]
    assert len(parts) == 2
