"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: one stub server instead of bespoke
transports in every test module.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any

import httpx

_DEFAULT_REPLY = {"choices": [{"message": {"content": "ok"}}]}

OPENAI_REPLY = {"choices": [{"message": {"content": "Hi there"}}]}
GEMINI_REPLY = {
    "candidates": [{"content": {"parts": [{"text": "Hello from Gemini"}]}}]
}


@dataclass
class StubServer:
    """Recording ``httpx`` handler that replays a scripted sequence.

    Each script item is an ``httpx.Response`` (returned), an exception
    (raised as if the transport failed), or a dict (returned as a 200 JSON
    body). With an empty script every call answers with a minimal
    chat-completions body.
    """

    script: list[httpx.Response | BaseException | dict[str, Any]] = field(
        default_factory=list
    )
    requests: list[httpx.Request] = field(default_factory=list)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.script:
            return httpx.Response(200, json=_DEFAULT_REPLY)
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, httpx.Response):
            return item
        return httpx.Response(200, json=item)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)


@dataclass
class FakeDocument:
    """Document double exposing extracted text and rendered pages."""

    text: str = "Quarterly revenue grew 12%."
    pages: dict[int, bytes] = field(default_factory=lambda: {1: b"\x89PNG-page-1"})
    page_requests: list[int] = field(default_factory=list)

    def get_text(self) -> str:
        return self.text

    def get_page_image(self, page: int) -> bytes:
        self.page_requests.append(page)
        return self.pages[page]
