"""Built-in provider definitions and the immutable provider registry."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal, get_args

ProviderId = Literal["gemini", "openai", "lmstudio", "custom"]

PROVIDER_IDS: tuple[ProviderId, ...] = get_args(ProviderId)

#: Families that speak the OpenAI chat-completions schema.
OPENAI_COMPATIBLE: frozenset[str] = frozenset({"openai", "lmstudio", "custom"})

#: Model-option value meaning "use the user's custom model name".
CUSTOM_MODEL = "custom"


@dataclass(frozen=True)
class SettingField:
    """One user-configurable settings input."""

    id: str
    label: str
    kind: str = "text"
    placeholder: str = ""


@dataclass(frozen=True)
class ModelOption:
    """A selectable model offered by a provider."""

    value: str
    label: str


@dataclass(frozen=True)
class ProviderConfig:
    """Static definition of a provider."""

    id: str
    name: str
    default_model: str
    default_endpoint: str | None = None
    settings_fields: tuple[SettingField, ...] = ()
    model_options: tuple[ModelOption, ...] = ()
    #: Whether requests fail early when no API key is set.
    requires_api_key: bool = False

    @property
    def openai_compatible(self) -> bool:
        return self.id in OPENAI_COMPATIBLE

    @property
    def allows_custom_model(self) -> bool:
        return any(opt.value == CUSTOM_MODEL for opt in self.model_options)


_CUSTOM_OPTION = ModelOption(CUSTOM_MODEL, "Custom Model")

# ---------------------------------------------------------------------------
# Provider definitions
# ---------------------------------------------------------------------------

PROVIDER_GEMINI = ProviderConfig(
    id="gemini",
    name="Google Gemini",
    default_model="gemini-pro",
    settings_fields=(
        SettingField("apiKey", "API Key", placeholder="Enter your Gemini API Key"),
    ),
    model_options=(
        ModelOption("gemini-2.0-flash", "Gemini 2.0 Flash"),
        ModelOption("gemini-2.5-flash-preview-04-17", "Gemini 2.5 Flash"),
        ModelOption("gemini-2.5-pro-exp-03-25", "Gemini 2.5 Pro"),
        _CUSTOM_OPTION,
    ),
    requires_api_key=True,
)

PROVIDER_OPENAI = ProviderConfig(
    id="openai",
    name="OpenAI",
    default_model="gpt-3.5-turbo",
    default_endpoint="https://api.openai.com/v1",
    settings_fields=(
        SettingField("apiKey", "API Key", placeholder="Enter your OpenAI API Key"),
    ),
    model_options=(
        ModelOption("gpt-3.5-turbo", "GPT-3.5 Turbo"),
        ModelOption("gpt-4-turbo", "GPT-4 Turbo"),
        ModelOption("gpt-4o", "GPT-4o"),
        _CUSTOM_OPTION,
    ),
)

PROVIDER_LMSTUDIO = ProviderConfig(
    id="lmstudio",
    name="LM Studio",
    default_model="local-model",
    default_endpoint="http://localhost:1234/v1",
    settings_fields=(
        SettingField(
            "endpoint",
            "API Endpoint",
            placeholder="e.g., http://localhost:1234/v1",
        ),
    ),
    model_options=(
        ModelOption("local-model", "Local Model (from LM Studio)"),
        _CUSTOM_OPTION,
    ),
)

PROVIDER_CUSTOM = ProviderConfig(
    id="custom",
    name="Custom AI Service",
    default_model="custom-model",
    settings_fields=(
        SettingField(
            "endpoint",
            "API Endpoint",
            placeholder="Enter full endpoint URL (e.g., https://api.example.com/v1)",
        ),
        SettingField(
            "apiKey",
            "API Key (Optional)",
            placeholder="Enter your API Key (if required)",
        ),
    ),
    model_options=(_CUSTOM_OPTION,),
)

BUILTIN_PROVIDERS: tuple[ProviderConfig, ...] = (
    PROVIDER_GEMINI,
    PROVIDER_OPENAI,
    PROVIDER_LMSTUDIO,
    PROVIDER_CUSTOM,
)


@dataclass(frozen=True)
class ProviderRegistry(Mapping[str, ProviderConfig]):
    """Read-only mapping of provider id to ``ProviderConfig``.

    Iteration preserves definition order, so the first entry is the default
    provider for callers that need one.
    """

    _providers: Mapping[str, ProviderConfig] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def from_configs(cls, configs: Iterable[ProviderConfig]) -> ProviderRegistry:
        """Build a registry from provider definitions, keyed by id."""
        table = {cfg.id: cfg for cfg in configs}
        return cls(MappingProxyType(table))

    @classmethod
    def default(cls) -> ProviderRegistry:
        """Return the registry of built-in providers."""
        return cls.from_configs(BUILTIN_PROVIDERS)

    def __getitem__(self, provider_id: str) -> ProviderConfig:
        return self._providers[provider_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def get_provider(self, provider_id: str) -> ProviderConfig | None:
        """Return a provider definition by id, or None if not found."""
        return self._providers.get(provider_id)

    def list_providers(self) -> list[ProviderConfig]:
        """Return all registered provider definitions."""
        return list(self._providers.values())
