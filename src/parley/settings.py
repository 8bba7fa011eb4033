"""User settings for providers and the read-only stores that supply them.

The core never writes settings. Stores only answer ``get(provider_id)``;
a provider with no stored entry reads as empty ``ProviderSettings``.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from parley.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

# Key under which the browser settings panel records the selected provider.
CURRENT_PROVIDER_KEY = "currentServiceId"


class ProviderSettings(BaseModel):
    """Per-provider user settings.

    Accepts both snake_case names and the camelCase keys used by the
    settings file (``apiKey``, ``customModel``).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    endpoint: str | None = Field(default=None, description="Endpoint override")
    api_key: str | None = Field(default=None, alias="apiKey", description="API key")
    model: str | None = Field(default=None, description="Selected model id")
    custom_model: str | None = Field(
        default=None,
        alias="customModel",
        description="Model name used when model == 'custom'",
    )

    def merged_with(self, fallback: ProviderSettings) -> ProviderSettings:
        """Fill empty fields from *fallback*."""
        values = {
            name: getattr(self, name) or getattr(fallback, name)
            for name in type(self).model_fields
        }
        return ProviderSettings(**values)


@runtime_checkable
class SettingsStore(Protocol):
    """Read-only source of per-provider settings."""

    def get(self, provider_id: str) -> ProviderSettings:
        """Return settings for *provider_id* (empty settings when unknown)."""
        ...


def _coerce(value: ProviderSettings | Mapping[str, Any]) -> ProviderSettings:
    if isinstance(value, ProviderSettings):
        return value
    return ProviderSettings.model_validate(value)


class InMemorySettingsStore:
    """Settings held in a plain mapping, e.g. supplied by a UI layer."""

    def __init__(
        self,
        settings: Mapping[str, ProviderSettings | Mapping[str, Any]] | None = None,
        *,
        current_provider_id: str | None = None,
    ) -> None:
        self._settings = {
            pid: _coerce(value) for pid, value in (settings or {}).items()
        }
        self.current_provider_id = current_provider_id

    def get(self, provider_id: str) -> ProviderSettings:
        return self._settings.get(provider_id, ProviderSettings()).model_copy()


# ---------------------------------------------------------------------------
# JSON file
# ---------------------------------------------------------------------------


def _parse_nested_format(
    raw: dict[str, Any],
) -> tuple[dict[str, ProviderSettings], str | None]:
    """Parse ``{"providers": {...}, "current_provider": "..."}``."""
    providers: dict[str, ProviderSettings] = {}
    for key, value in raw.get("providers", {}).items():
        if isinstance(value, dict):
            providers[key] = ProviderSettings.model_validate(value)
    current = raw.get("current_provider")
    return providers, current if isinstance(current, str) else None


def _parse_flat_format(
    raw: dict[str, Any],
) -> tuple[dict[str, ProviderSettings], str | None]:
    """Parse the flat layout: provider ids at top level plus ``currentServiceId``."""
    providers: dict[str, ProviderSettings] = {}
    for key, value in raw.items():
        if key == CURRENT_PROVIDER_KEY or not isinstance(value, dict):
            continue
        providers[key] = ProviderSettings.model_validate(value)
    current = raw.get(CURRENT_PROVIDER_KEY)
    return providers, current if isinstance(current, str) else None


class JsonSettingsStore:
    """Settings loaded from a JSON file.

    Two layouts are understood: the flat one written by the browser settings
    panel (``{"currentServiceId": "gemini", "gemini": {"apiKey": ...}}``) and
    a nested one (``{"providers": {...}, "current_provider": "gemini"}``).
    A missing file reads as no settings. The file is read at construction
    and again on ``reload()``.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        self._settings: dict[str, ProviderSettings] = {}
        self.current_provider_id: str | None = None
        self.reload()

    def reload(self) -> None:
        """Re-read the settings file."""
        if not self.path.is_file():
            logger.debug("Settings file %s not found; using empty settings", self.path)
            self._settings, self.current_provider_id = {}, None
            return
        try:
            with open(self.path, encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Could not read settings file {self.path}: {e}",
                hint="Fix or delete the file; it must contain a JSON object.",
            ) from e
        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"Settings file {self.path} must contain a JSON object",
            )
        try:
            if isinstance(raw.get("providers"), dict):
                parsed = _parse_nested_format(raw)
            else:
                parsed = _parse_flat_format(raw)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid provider settings in {self.path}",
                hint=str(e),
            ) from e
        self._settings, self.current_provider_id = parsed

    def get(self, provider_id: str) -> ProviderSettings:
        return self._settings.get(provider_id, ProviderSettings()).model_copy()


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

_ENV_FIELDS: dict[str, str] = {
    "api_key": "API_KEY",
    "endpoint": "ENDPOINT",
    "model": "MODEL",
    "custom_model": "CUSTOM_MODEL",
}


def env_var_name(provider_id: str, field_name: str) -> str:
    """Return the environment variable for a provider setting.

    Example: ``env_var_name("gemini", "api_key") == "GEMINI_API_KEY"``.
    """
    return f"{provider_id.upper()}_{_ENV_FIELDS[field_name]}"


class EnvSettingsStore:
    """Settings read from environment variables (``GEMINI_API_KEY`` etc.).

    With ``load_dotenv=True`` a ``.env`` file is loaded first, without
    overriding variables that are already set.
    """

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        *,
        load_dotenv: bool = True,
    ) -> None:
        if environ is None:
            if load_dotenv:
                from dotenv import load_dotenv as _load_dotenv

                _load_dotenv()
            environ = os.environ
        self._environ = environ

    def get(self, provider_id: str) -> ProviderSettings:
        values = {
            name: self._environ.get(env_var_name(provider_id, name)) or None
            for name in _ENV_FIELDS
        }
        return ProviderSettings(**values)


def mask_api_key(api_key: str | None, visible_chars: int = 4) -> str:
    """Mask an API key for safe display.

    Example: ``"sk-abcdefghijk"`` -> ``"sk-*******hijk"``
    """
    if not api_key:
        return ""
    if len(api_key) <= visible_chars:
        return "*" * len(api_key)
    prefix = api_key[:3] if len(api_key) > visible_chars + 3 else ""
    suffix = api_key[-visible_chars:]
    hidden_len = len(api_key) - len(prefix) - visible_chars
    return f"{prefix}{'*' * max(hidden_len, 4)}{suffix}"


class ChainedSettingsStore:
    """Layer several stores; for each field the first non-empty value wins."""

    def __init__(self, *stores: SettingsStore) -> None:
        self.stores: tuple[SettingsStore, ...] = stores

    @property
    def current_provider_id(self) -> str | None:
        for store in self.stores:
            current = getattr(store, "current_provider_id", None)
            if current:
                return current
        return None

    def get(self, provider_id: str) -> ProviderSettings:
        merged = ProviderSettings()
        for store in reversed(self.stores):
            merged = store.get(provider_id).merged_with(merged)
        return merged
