"""Value objects passed across the client boundary."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Any

_KEY_QUERY_RE = re.compile(r"([?&]key=)[^&]*")


def redact_url(url: str) -> str:
    """Hide a ``key=`` query parameter value."""
    return _KEY_QUERY_RE.sub(r"\1[REDACTED]", url)


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Hide credentials in an HTTP header mapping."""
    return {
        name: "[REDACTED]" if name.lower() in {"authorization", "x-api-key"} else value
        for name, value in headers.items()
    }


@dataclass(frozen=True)
class PreparedRequest:
    """A fully resolved provider call, built fresh for each request."""

    provider_id: str
    endpoint: str
    headers: dict[str, str]
    body: dict[str, Any]
    model: str

    def __repr__(self) -> str:
        """Return a representation safe to log."""
        return (
            f"PreparedRequest(provider_id={self.provider_id!r}, "
            f"endpoint={redact_url(self.endpoint)!r}, "
            f"headers={redact_headers(self.headers)!r}, model={self.model!r})"
        )

    __str__ = __repr__


@dataclass(frozen=True)
class AIResponse:
    """Normalized answer from a provider."""

    result: str
    model: str
    #: Provider response body, kept for diagnostics.
    raw: Any = field(default=None, repr=False)


@dataclass(frozen=True)
class ConnectionTestResult:
    """Outcome of a connection test, ready to display."""

    ok: bool
    message: str
    model: str | None = None
