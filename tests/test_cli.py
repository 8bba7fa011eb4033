"""Command-line behavior with an injected client."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx
import pytest

from parley.cli import build_parser, main
from tests.helpers import OPENAI_REPLY, StubServer

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from parley.client import AIServiceClient

pytestmark = pytest.mark.integration


def test_ask_prints_answer(
    make_client: Callable[..., AIServiceClient],
    stub_server: StubServer,
    capsys: pytest.CaptureFixture[str],
) -> None:
    stub_server.script.append(OPENAI_REPLY)
    client = make_client({"openai": {"apiKey": "sk"}})

    code = main(
        ["ask", "Hello", "-p", "openai", "--max-tokens", "10", "--show-model"],
        client=client,
    )

    out = capsys.readouterr().out
    assert code == 0
    assert "[openai / gpt-3.5-turbo]" in out
    assert "Hi there" in out
    assert stub_server.last_json()["max_tokens"] == 10


def test_ask_defaults_to_first_provider(
    make_client: Callable[..., AIServiceClient],
    stub_server: StubServer,
    capsys: pytest.CaptureFixture[str],
) -> None:
    code = main(["ask", "Hello"], client=make_client())

    # Gemini is listed first and has no key configured.
    assert code == 1
    err = capsys.readouterr().err
    assert "API Key is missing or invalid for Google Gemini" in err
    assert "Hint: Set GEMINI_API_KEY" in err
    assert stub_server.calls == 0


def test_ask_rejects_invalid_options(
    make_client: Callable[..., AIServiceClient],
    stub_server: StubServer,
    capsys: pytest.CaptureFixture[str],
) -> None:
    argv = ["ask", "Hello", "-p", "lmstudio", "--top-p", "3"]

    code = main(argv, client=make_client())

    assert code == 2
    assert "top_p must be <= 1" in capsys.readouterr().err
    assert stub_server.calls == 0


def test_test_command_reports_success(
    make_client: Callable[..., AIServiceClient],
    capsys: pytest.CaptureFixture[str],
) -> None:
    code = main(
        ["test", "lmstudio", "--model", "custom", "--custom-model", "phi-3"],
        client=make_client(),
    )

    assert code == 0
    assert "Connection successful! (Model: phi-3)" in capsys.readouterr().out


def test_test_command_reports_failure(
    make_client: Callable[..., AIServiceClient],
    stub_server: StubServer,
    capsys: pytest.CaptureFixture[str],
) -> None:
    stub_server.script.append(httpx.ConnectError("refused"))

    code = main(["test", "lmstudio"], client=make_client())

    assert code == 1
    assert "Connection failed: Could not connect" in capsys.readouterr().err


def test_providers_masks_keys(
    make_client: Callable[..., AIServiceClient],
    capsys: pytest.CaptureFixture[str],
) -> None:
    client = make_client({"openai": {"apiKey": "sk-abcdefghijk"}})

    code = main(["providers"], client=client)

    out = capsys.readouterr().out
    assert code == 0
    assert "sk-abcdefghijk" not in out
    assert "sk-*******hijk" in out
    assert "http://localhost:1234/v1" in out
    for name in ("Google Gemini", "OpenAI", "LM Studio", "Custom AI Service"):
        assert name in out


def test_settings_file_current_provider_is_used(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"currentServiceId": "custom", "custom": {"apiKey": "sk-file"}})
    )

    code = main(["--settings", str(path), "ask", "Hi"])

    # The custom provider has no endpoint, so it fails before any I/O.
    assert code == 1
    assert "API Endpoint is not set for Custom AI Service" in capsys.readouterr().err


def test_settings_path_defaults_to_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("PARLEY_SETTINGS", str(tmp_path / "s.json"))
    monkeypatch.setenv("PARLEY_LOG_LEVEL", "DEBUG")

    args = build_parser().parse_args(["providers"])

    assert args.settings == str(tmp_path / "s.json")
    assert args.log_level == "debug"


def test_broken_settings_file_is_reported(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{oops")

    code = main(["--settings", str(path), "providers"])

    assert code == 2
    assert "Could not read settings file" in capsys.readouterr().err


def test_missing_subcommand_is_a_usage_error() -> None:
    with pytest.raises(SystemExit) as exc:
        main([])

    assert exc.value.code == 2


def test_invalid_log_level_from_environment_is_a_usage_error(
    make_client: Callable[..., AIServiceClient],
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("PARLEY_LOG_LEVEL", "verbose")

    with pytest.raises(SystemExit) as exc:
        main(["providers"], client=make_client())

    assert exc.value.code == 2
    assert "invalid log level 'verbose'" in capsys.readouterr().err
