"""AIServiceClient: one call surface over every configured provider.

Request flow:
    ``send`` -> ``prepare`` (resolve model/key/endpoint, build body) ->
    one HTTP POST -> status and body checks -> ``extract_text``.

Retry behavior:
    None. Each request is attempted once and failures propagate immediately.

Failure handling:
    ``prepare`` raises ``ConfigurationError`` subclasses before any I/O.
    ``send`` re-maps every failure into a ``RequestError`` subclass with a
    message ready to show to the user; the original is chained.
"""

from __future__ import annotations

from collections.abc import Mapping
import copy
import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from parley._errors import map_error
from parley.errors import (
    ConfigurationError,
    ParleyError,
    ProviderError,
    TransportError,
    UnknownProviderError,
)
from parley.extraction import extract_text
from parley.models import AIResponse, ConnectionTestResult, PreparedRequest, redact_url
from parley.options import RequestOptions
from parley.payloads import payload_from_document
from parley.providers import get_adapter
from parley.registry import CUSTOM_MODEL, ProviderRegistry
from parley.resolve import (
    resolve_api_key,
    resolve_custom_model,
    resolve_endpoint,
    resolve_model,
)
from parley.settings import InMemorySettingsStore

if TYPE_CHECKING:
    from collections.abc import Iterable
    from types import TracebackType

    from parley.payloads import DocumentSource
    from parley.providers import ProviderAdapter
    from parley.registry import ProviderConfig
    from parley.settings import SettingsStore

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 60.0
CONNECTION_TEST_PROMPT = "Hello, world!"
CONNECTION_TEST_MAX_TOKENS = 10

PromptOrPayload = str | Mapping[str, Any]


def _http_error_message(response: httpx.Response) -> str:
    """Compose ``HTTP error <status>: <detail>`` from an error response."""
    try:
        data = response.json()
    except ValueError:
        detail = response.text
    else:
        error = data.get("error") if isinstance(data, dict) else None
        message = error.get("message") if isinstance(error, dict) else None
        detail = message or json.dumps(data)
    return f"HTTP error {response.status_code}: {detail}"


def _embedded_error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or json.dumps(error))
    return str(error)


class AIServiceClient:
    """Send prompts to generative-AI providers and normalize the answers.

    Args:
        registry: Static provider definitions. Defaults to the built-ins.
        settings: Read-only user settings. Defaults to an empty store.
        http_client: Optional ``httpx.AsyncClient``. An injected client is
            never closed by ``aclose()``.
        timeout_s: Timeout for the client this object creates itself.

    Example:
        async with AIServiceClient(settings=EnvSettingsStore()) as client:
            reply = await client.send("openai", "Hello", RequestOptions(max_tokens=10))
            print(reply.result)
    """

    def __init__(
        self,
        registry: ProviderRegistry | None = None,
        settings: SettingsStore | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_s: float | None = DEFAULT_TIMEOUT_S,
    ) -> None:
        self.registry = registry if registry is not None else ProviderRegistry.default()
        self.settings = settings if settings is not None else InMemorySettingsStore()
        self.timeout_s = timeout_s
        self._client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Lazily initialize and return the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this object created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> AIServiceClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def provider_config(self, provider_id: str) -> ProviderConfig:
        """Return the provider definition or raise ``UnknownProviderError``."""
        config = self.registry.get_provider(provider_id)
        if config is None:
            raise UnknownProviderError(
                f"Service configuration not found for provider: {provider_id}",
                hint=f"Known providers: {', '.join(self.registry)}",
            )
        return config

    def _adapter(self, config: ProviderConfig) -> ProviderAdapter:
        adapter = get_adapter(config.id)
        if adapter is None:
            raise UnknownProviderError(f"Unsupported AI service: {config.id}")
        return adapter

    # ------------------------------------------------------------------
    # Prepare
    # ------------------------------------------------------------------

    def prepare(
        self,
        provider_id: str,
        prompt_or_payload: PromptOrPayload,
        options: RequestOptions | None = None,
    ) -> PreparedRequest:
        """Resolve settings into a ready-to-send request. No network I/O.

        A string prompt is wrapped in the provider's body schema. A mapping is
        used verbatim (copied) as the body; when it names no ``model`` the
        resolved one is added, and when it names a different one the payload
        wins and a warning is logged.

        Raises:
            ConfigurationError: Unknown provider, Gemini without an API key,
                or an OpenAI-compatible provider without an endpoint.
        """
        config = self.provider_config(provider_id)
        adapter = self._adapter(config)
        settings = self.settings.get(provider_id)

        model = resolve_model(options, settings, config)
        api_key = resolve_api_key(settings)
        endpoint = resolve_endpoint(settings, config)

        if isinstance(prompt_or_payload, str):
            body = adapter.build_body(prompt_or_payload, model=model, options=options)
        elif isinstance(prompt_or_payload, Mapping):
            body = copy.deepcopy(dict(prompt_or_payload))
            payload_model = body.get("model")
            if payload_model and payload_model != model:
                logger.warning(
                    "Model mismatch: resolved %s, but payload contains %s. "
                    "Using model from payload.",
                    model,
                    payload_model,
                )
                model = str(payload_model)
            elif not payload_model and config.openai_compatible:
                body["model"] = model
        else:
            raise ConfigurationError(
                f"Prompt must be a string or a mapping payload, got "
                f"{type(prompt_or_payload).__name__}",
            )

        url, headers = adapter.authenticate(
            config, endpoint=endpoint, api_key=api_key, model=model
        )
        prepared = PreparedRequest(
            provider_id=provider_id,
            endpoint=url,
            headers=headers,
            body=body,
            model=model,
        )
        logger.debug(
            "Prepared request: provider=%s model=%s endpoint=%s api_key_set=%s",
            provider_id,
            model,
            redact_url(url),
            bool(api_key),
        )
        return prepared

    # ------------------------------------------------------------------
    # Send
    # ------------------------------------------------------------------

    async def send(
        self,
        provider_id: str,
        prompt_or_payload: PromptOrPayload,
        options: RequestOptions | None = None,
    ) -> AIResponse:
        """Prepare and send one request; return the normalized answer.

        Raises:
            RequestError: Always one of ``AuthError``, ``NetworkError``,
                ``EndpointNotFoundError`` or a plain ``RequestError``.
        """
        try:
            prepared = self.prepare(provider_id, prompt_or_payload, options)
            return await self._execute(prepared)
        except Exception as exc:
            config = self.registry.get_provider(provider_id)
            mapped = map_error(
                exc,
                provider_id=provider_id,
                provider_name=config.name if config is not None else None,
            )
            logger.warning("Request to %s failed: %s", provider_id, exc)
            if mapped is exc:
                raise
            raise mapped from exc

    async def _execute(self, prepared: PreparedRequest) -> AIResponse:
        logger.debug(
            "Sending to %s (%s) at %s",
            prepared.provider_id,
            prepared.model,
            redact_url(prepared.endpoint),
        )
        response = await self._get_client().post(
            prepared.endpoint,
            headers=prepared.headers,
            json=prepared.body,
        )

        if not response.is_success:
            raise TransportError(
                _http_error_message(response),
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                f"Response from {prepared.provider_id} was not valid JSON",
                body=response.text,
            ) from e

        if isinstance(data, dict) and data.get("error"):
            raise ProviderError(
                f"API Error: {_embedded_error_message(data['error'])}",
                body=data,
            )

        return AIResponse(
            result=extract_text(data, prepared.provider_id),
            model=prepared.model,
            raw=data,
        )

    extract_text = staticmethod(extract_text)

    # ------------------------------------------------------------------
    # Convenience wrappers
    # ------------------------------------------------------------------

    async def test_connection(
        self,
        provider_id: str,
        *,
        selected_model: str | None = None,
        custom_model: str | None = None,
    ) -> ConnectionTestResult:
        """Send a tiny prompt and report whether the provider answered.

        *selected_model* is the model currently picked in a UI (``"custom"``
        defers to *custom_model*); without it the settings model, then the
        provider default, is tested. Never raises for provider or settings
        failures.
        """
        config = self.registry.get_provider(provider_id)
        if config is None:
            return ConnectionTestResult(
                ok=False,
                message=(
                    f"Connection failed: Configuration for service {provider_id} "
                    "not found."
                ),
            )

        if selected_model == CUSTOM_MODEL:
            model = resolve_custom_model(custom_model, config)
        elif selected_model:
            model = selected_model
        else:
            model = resolve_model(None, self.settings.get(provider_id), config)

        logger.info("Testing provider %s with model %s", provider_id, model)
        try:
            response = await self.send(
                provider_id,
                CONNECTION_TEST_PROMPT,
                RequestOptions(model=model, max_tokens=CONNECTION_TEST_MAX_TOKENS),
            )
        except ParleyError as exc:
            return ConnectionTestResult(
                ok=False, message=f"Connection failed: {exc}", model=model
            )
        return ConnectionTestResult(
            ok=True,
            message=f"Connection successful! (Model: {response.model})",
            model=response.model,
        )

    async def ask_document(
        self,
        provider_id: str,
        question: str,
        document: DocumentSource,
        *,
        pages: Iterable[int] = (),
        include_text: bool = True,
        options: RequestOptions | None = None,
    ) -> AIResponse:
        """Ask *question* about *document*, sending its text and page images.

        Raises:
            RequestError: As for ``send``, including failures raised by
                *document* while its text or pages are read.
        """
        try:
            config = self.provider_config(provider_id)
            model = resolve_model(options, self.settings.get(provider_id), config)
            payload = payload_from_document(
                provider_id,
                question,
                document,
                model=model,
                pages=pages,
                include_text=include_text,
            )
        except Exception as exc:
            # DocumentSource failures (e.g. a missing page) map like send errors.
            config = self.registry.get_provider(provider_id)
            logger.warning("Document payload for %s failed: %s", provider_id, exc)
            raise map_error(
                exc,
                provider_id=provider_id,
                provider_name=config.name if config is not None else None,
            ) from exc
        return await self.send(provider_id, payload, options)
