"""Command line for listing providers, testing connections, and asking.

Examples:
- parley providers
- parley test lmstudio --model custom --custom-model qwen2.5-7b
- parley --settings ~/.parley.json ask "Summarize this in one line" -p openai
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import TYPE_CHECKING

from parley.client import AIServiceClient
from parley.errors import ConfigurationError, ParleyError
from parley.options import RequestOptions
from parley.registry import ProviderRegistry
from parley.settings import (
    ChainedSettingsStore,
    EnvSettingsStore,
    JsonSettingsStore,
    SettingsStore,
    mask_api_key,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

LOG_LEVEL_ENV = "PARLEY_LOG_LEVEL"
SETTINGS_ENV = "PARLEY_SETTINGS"
LOG_LEVELS = ("debug", "info", "warning", "error")


def _build_settings(path: str | None) -> SettingsStore:
    """File settings (when given) layered over environment variables."""
    stores: list[SettingsStore] = []
    if path:
        stores.append(JsonSettingsStore(path))
    stores.append(EnvSettingsStore())
    return ChainedSettingsStore(*stores)


def _pick_provider(client: AIServiceClient, provider_id: str | None) -> str:
    """Return *provider_id*, else the stored current provider, else the first."""
    if provider_id:
        return provider_id
    current = getattr(client.settings, "current_provider_id", None)
    if current and current in client.registry:
        return current
    return next(iter(client.registry))


def _print_error(message: str, hint: str | None = None) -> None:
    suffix = f" Hint: {hint}" if hint else ""
    print(f"Error: {message}{suffix}", file=sys.stderr)


def _print_section(title: str) -> None:
    print(f"\n{title}")
    print("-" * len(title))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_providers(client: AIServiceClient, _args: argparse.Namespace) -> int:
    """Show all providers and their current configuration."""
    for config in client.registry.list_providers():
        settings = client.settings.get(config.id)
        _print_section(f"{config.name} ({config.id})")
        endpoint = settings.endpoint or config.default_endpoint or "(not set)"
        rows = [
            ("endpoint", endpoint),
            ("api_key", mask_api_key(settings.api_key) or "(not set)"),
            ("model", settings.model or config.default_model),
            ("models", ", ".join(opt.value for opt in config.model_options)),
        ]
        for key, value in rows:
            print(f"- {key:<10s}: {value}")
    print()
    return 0


def cmd_test(client: AIServiceClient, args: argparse.Namespace) -> int:
    """Send a short test prompt to a provider."""
    provider_id = _pick_provider(client, args.provider_id)

    async def _run():
        async with client:
            return await client.test_connection(
                provider_id,
                selected_model=args.model,
                custom_model=args.custom_model,
            )

    result = asyncio.run(_run())
    if not result.ok:
        print(result.message, file=sys.stderr)
        return 1
    print(result.message)
    return 0


def cmd_ask(client: AIServiceClient, args: argparse.Namespace) -> int:
    """Send PROMPT and print the answer."""
    provider_id = _pick_provider(client, args.provider_id)
    try:
        options = RequestOptions(
            model=args.model,
            max_tokens=args.max_tokens,
            temperature=args.temperature,
            top_p=args.top_p,
        )
    except ConfigurationError as exc:
        _print_error(str(exc), exc.hint)
        return 2

    async def _run():
        async with client:
            return await client.send(provider_id, args.prompt, options)

    try:
        response = asyncio.run(_run())
    except ParleyError as exc:
        _print_error(str(exc), exc.hint)
        return 1
    if args.show_model:
        print(f"[{provider_id} / {response.model}]")
    print(response.result)
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(
        prog="parley",
        description="Send prompts to Gemini, OpenAI, LM Studio, or a custom endpoint.",
    )
    parser.add_argument(
        "--settings",
        default=os.environ.get(SETTINGS_ENV),
        help=f"JSON settings file (default: ${SETTINGS_ENV}).",
    )
    parser.add_argument(
        "--log-level",
        type=str.lower,
        choices=LOG_LEVELS,
        default=os.environ.get(LOG_LEVEL_ENV, "warning").lower(),
        help=f"Logging level (default: ${LOG_LEVEL_ENV} or warning).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    providers = sub.add_parser("providers", help="List providers and their settings")
    providers.set_defaults(handler=cmd_providers)

    test = sub.add_parser("test", help="Send a short test prompt to a provider")
    test.add_argument("provider_id", nargs="?", default=None, help="Provider id")
    test.add_argument(
        "--model", default=None, help="Model to test ('custom' uses --custom-model)."
    )
    test.add_argument(
        "--custom-model", default=None, help="Model name when --model=custom."
    )
    test.set_defaults(handler=cmd_test)

    ask = sub.add_parser("ask", help="Send a prompt and print the answer")
    ask.add_argument("prompt", help="Prompt text")
    ask.add_argument("-p", "--provider", dest="provider_id", default=None)
    ask.add_argument("--model", default=None)
    ask.add_argument("--max-tokens", type=int, default=None)
    ask.add_argument("--temperature", type=float, default=None)
    ask.add_argument("--top-p", type=float, default=None)
    ask.add_argument(
        "--show-model",
        action="store_true",
        help="Print the provider and model that answered.",
    )
    ask.set_defaults(handler=cmd_ask)
    return parser


def main(
    argv: Sequence[str] | None = None, *, client: AIServiceClient | None = None
) -> int:
    """Run the command line; returns the process exit status.

    *client* replaces the one built from ``--settings`` and the environment.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.log_level not in LOG_LEVELS:
        # Defaults from the environment bypass argparse choices.
        parser.error(
            f"invalid log level {args.log_level!r} from ${LOG_LEVEL_ENV} "
            f"(choose from {', '.join(LOG_LEVELS)})"
        )
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )
    if client is None:
        try:
            settings = _build_settings(args.settings)
        except ConfigurationError as exc:
            _print_error(str(exc), exc.hint)
            return 2
        client = AIServiceClient(ProviderRegistry.default(), settings)
    return int(args.handler(client, args))


if __name__ == "__main__":  # pragma: no cover - direct execution guard
    raise SystemExit(main())
