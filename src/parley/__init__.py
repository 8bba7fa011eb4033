"""Parley: one async call surface over Gemini and OpenAI-compatible APIs.

Public API:
    - AIServiceClient: prepare/send requests, extract text, test connections
    - ProviderRegistry: static provider definitions
    - Settings stores: in-memory, JSON file, environment, chained
    - RequestOptions: per-request model and generation overrides
"""

from __future__ import annotations

import logging

from parley.client import AIServiceClient
from parley.errors import (
    AuthError,
    ConfigurationError,
    EndpointNotFoundError,
    MissingAPIKeyError,
    MissingEndpointError,
    NetworkError,
    ParleyError,
    ProviderError,
    RequestError,
    TransportError,
    UnknownProviderError,
)
from parley.extraction import extract_text
from parley.models import AIResponse, ConnectionTestResult, PreparedRequest
from parley.options import RequestOptions
from parley.payloads import DocumentSource, build_document_payload
from parley.registry import (
    PROVIDER_IDS,
    ModelOption,
    ProviderConfig,
    ProviderId,
    ProviderRegistry,
    SettingField,
)
from parley.resolve import resolve_model
from parley.settings import (
    ChainedSettingsStore,
    EnvSettingsStore,
    InMemorySettingsStore,
    JsonSettingsStore,
    ProviderSettings,
    SettingsStore,
)

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("parley-ai")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("parley").addHandler(logging.NullHandler())

__all__ = [
    "PROVIDER_IDS",
    "AIResponse",
    "AIServiceClient",
    "AuthError",
    "ChainedSettingsStore",
    "ConfigurationError",
    "ConnectionTestResult",
    "DocumentSource",
    "EndpointNotFoundError",
    "EnvSettingsStore",
    "InMemorySettingsStore",
    "JsonSettingsStore",
    "MissingAPIKeyError",
    "MissingEndpointError",
    "ModelOption",
    "NetworkError",
    "ParleyError",
    "PreparedRequest",
    "ProviderConfig",
    "ProviderError",
    "ProviderId",
    "ProviderRegistry",
    "ProviderSettings",
    "RequestError",
    "RequestOptions",
    "SettingField",
    "SettingsStore",
    "TransportError",
    "UnknownProviderError",
    "build_document_payload",
    "extract_text",
    "resolve_model",
]
