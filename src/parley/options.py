"""Per-request overrides."""

from __future__ import annotations

from dataclasses import dataclass

from parley.errors import ConfigurationError


@dataclass(frozen=True)
class RequestOptions:
    """Optional overrides for a single request.

    ``None`` means "use the user setting, then the provider default".
    """

    #: Takes precedence over the settings model and the provider default.
    model: str | None = None
    #: Maps to ``max_tokens`` (OpenAI-compatible) or ``maxOutputTokens`` (Gemini).
    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None

    def __post_init__(self) -> None:
        """Validate option shapes early for clear errors."""
        if self.model is not None and not isinstance(self.model, str):
            raise ConfigurationError(
                "model must be a string",
                hint="Pass model='gpt-4o' or leave it unset.",
            )

        if self.max_tokens is not None and (
            isinstance(self.max_tokens, bool)
            or not isinstance(self.max_tokens, int)
            or self.max_tokens <= 0
        ):
            raise ConfigurationError(
                "max_tokens must be a positive integer",
                hint="Pass max_tokens=256 or leave it unset.",
            )

        for name in ("temperature", "top_p"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"{name} must be a number")
            if value < 0:
                raise ConfigurationError(f"{name} must be >= 0, got {value}")

        if self.top_p is not None and self.top_p > 1:
            raise ConfigurationError(
                f"top_p must be <= 1, got {self.top_p}",
                hint="top_p is a probability mass between 0 and 1.",
            )

    def generation_params(self) -> dict[str, int | float]:
        """Return the set generation parameters keyed by their option name."""
        params: dict[str, int | float] = {}
        if self.max_tokens is not None:
            params["max_tokens"] = self.max_tokens
        if self.temperature is not None:
            params["temperature"] = self.temperature
        if self.top_p is not None:
            params["top_p"] = self.top_p
        return params
