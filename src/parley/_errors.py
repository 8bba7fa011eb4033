"""Map request failures into the user-facing error categories.

``send`` routes every failure through ``map_error`` so callers only need to
render ``RequestError`` subclasses.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx

from parley.errors import (
    AuthError,
    EndpointNotFoundError,
    MissingAPIKeyError,
    NetworkError,
    RequestError,
    TransportError,
)

if TYPE_CHECKING:
    from collections.abc import Iterator


def walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its cause/context chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)


def _is_network_failure(exc: BaseException) -> bool:
    # RequestError is httpx's base for connect, DNS, read, and timeout failures.
    return any(
        isinstance(e, (httpx.RequestError, ConnectionError, TimeoutError))
        for e in walk_exception_chain(exc)
    )


def map_error(
    exc: BaseException,
    *,
    provider_id: str,
    provider_name: str | None = None,
) -> RequestError:
    """Return the user-facing ``RequestError`` for *exc*.

    - missing key or HTTP 401 -> ``AuthError``
    - connection failure -> ``NetworkError``
    - HTTP 404 -> ``EndpointNotFoundError``
    - anything else -> ``RequestError`` with the original message
    """
    if isinstance(exc, asyncio.CancelledError):
        raise exc

    label = provider_name or provider_id

    # Already mapped: fill in missing context only.
    if isinstance(exc, RequestError):
        if exc.provider is None:
            exc.provider = provider_id
        return exc

    status_code = exc.status_code if isinstance(exc, TransportError) else None
    hint = getattr(exc, "hint", None)

    if isinstance(exc, MissingAPIKeyError):
        return AuthError(
            f"API Key is missing or invalid for {label}. Please check settings.",
            hint=hint,
            provider=provider_id,
            cause=exc,
        )
    if _is_network_failure(exc):
        return NetworkError(
            "Could not connect to the AI service endpoint. Please check the "
            "endpoint URL in settings and ensure the service is running.",
            hint=hint,
            provider=provider_id,
            cause=exc,
        )
    if status_code == 401:
        return AuthError(
            f"Authentication failed. Please check your API Key for {label}.",
            hint=hint,
            provider=provider_id,
            status_code=status_code,
            cause=exc,
        )
    if status_code == 404:
        return EndpointNotFoundError(
            "API endpoint not found. Please check the endpoint URL in settings.",
            hint=hint,
            provider=provider_id,
            status_code=status_code,
            cause=exc,
        )
    return RequestError(
        str(exc) or type(exc).__name__,
        hint=hint,
        provider=provider_id,
        status_code=status_code,
        cause=exc,
    )
