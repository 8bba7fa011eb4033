"""Exception hierarchy for Parley."""

from __future__ import annotations

from typing import Any


class ParleyError(Exception):
    """Base exception for all Parley errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(ParleyError):
    """Provider or settings resolution failed before any network I/O."""


class UnknownProviderError(ConfigurationError):
    """No provider configuration exists for the requested id."""


class MissingAPIKeyError(ConfigurationError):
    """The provider requires an API key and none is configured."""


class MissingEndpointError(ConfigurationError):
    """No endpoint is resolvable from settings or provider defaults."""


class TransportError(ParleyError):
    """The provider answered with a non-2xx HTTP status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        body: Any = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.body = body


class ProviderError(ParleyError):
    """The provider answered 2xx but embedded an error in the body."""

    def __init__(
        self, message: str, *, body: Any = None, hint: str | None = None
    ) -> None:
        super().__init__(message, hint=hint)
        self.body = body


class RequestError(ParleyError):
    """User-facing failure of a single request.

    ``send`` re-maps every failure into this class or one of its subclasses.
    The underlying exception is kept on ``cause`` (and ``__cause__``).
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        provider: str | None = None,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.provider = provider
        self.status_code = status_code
        self.cause = cause


class AuthError(RequestError):
    """API key missing, invalid, or rejected (HTTP 401)."""


class NetworkError(RequestError):
    """The endpoint could not be reached (connection, DNS, or timeout)."""


class EndpointNotFoundError(RequestError):
    """The endpoint answered HTTP 404."""
