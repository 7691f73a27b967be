from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any

import pytest

import discord_hook.__main__ as cli
from discord_hook.models import Message, WebhookResponse
from discord_hook.webhook import Webhook

WEBHOOK_URL = "https://discord.com/api/webhooks/123/token"


def _args(config: Path, **overrides: Any) -> argparse.Namespace:
    values: dict[str, Any] = {
        "config": str(config),
        "content": None,
        "files": [],
        "execute": False,
        "wait": False,
        "log_level": "INFO",
    }
    values.update(overrides)
    return argparse.Namespace(**values)


def _write_config(tmp_path: Path, url: str = WEBHOOK_URL) -> Path:
    config_path = tmp_path / "hook.yml"
    config_path.write_text(
        f"webhook:\n  url: {url}\nmessage:\n  username: CLI\n", encoding="utf-8"
    )
    return config_path


def test_main_reports_missing_config(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    missing_path = tmp_path / "absent.yml"
    monkeypatch.setattr(cli, "parse_args", lambda: _args(missing_path))

    with caplog.at_level(logging.ERROR):
        with pytest.raises(SystemExit) as exc:
            cli.main()

    assert exc.value.code == 1
    assert str(missing_path) in caplog.text


def test_main_rejects_non_webhook_url(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    config_path = _write_config(tmp_path, url="https://example.com/not-a-webhook")
    monkeypatch.setattr(cli, "parse_args", lambda: _args(config_path, content="hi"))

    with caplog.at_level(logging.ERROR):
        with pytest.raises(SystemExit) as exc:
            cli.main()

    assert exc.value.code == 1
    assert "not a Discord webhook URL" in caplog.text


def test_main_sends_message_with_defaults(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    sent: list[Message] = []

    async def fake_send(self: Webhook, message: Message) -> WebhookResponse:
        sent.append(message)
        return WebhookResponse(204, "")

    config_path = _write_config(tmp_path)
    monkeypatch.setattr(cli, "parse_args", lambda: _args(config_path, content="Hello"))
    monkeypatch.setattr(Webhook, "send", fake_send)

    cli.main()

    assert sent == [Message(content="Hello", username="CLI")]
    assert capsys.readouterr().out == "204\n"


def test_main_sends_attachments(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    calls: list[tuple[Message, list[Path]]] = []

    async def fake_send_with_attachments(
        self: Webhook, message: Message, attachments: list[Any]
    ) -> WebhookResponse:
        calls.append((message, [item.path for item in attachments]))
        return WebhookResponse(200, '{"id":"1"}')

    report = tmp_path / "report.txt"
    report.write_text("report", encoding="utf-8")
    config_path = _write_config(tmp_path)
    monkeypatch.setattr(
        cli, "parse_args", lambda: _args(config_path, files=[str(report)])
    )
    monkeypatch.setattr(Webhook, "send_with_attachments", fake_send_with_attachments)

    cli.main()

    assert calls == [(Message(username="CLI"), [report])]
    assert capsys.readouterr().out == '200\n{"id":"1"}\n'


def test_main_executes_with_wait(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    waits: list[bool] = []

    async def fake_execute(self: Webhook, wait: bool = False) -> WebhookResponse:
        waits.append(wait)
        return WebhookResponse(400, "bad")

    config_path = _write_config(tmp_path)
    monkeypatch.setattr(
        cli, "parse_args", lambda: _args(config_path, execute=True, wait=True)
    )
    monkeypatch.setattr(Webhook, "execute", fake_execute)

    cli.main()

    assert waits == [True]
    assert capsys.readouterr().out == "400\nbad\n"


def test_main_exits_on_content_too_long(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    config_path = _write_config(tmp_path)
    monkeypatch.setattr(cli, "parse_args", lambda: _args(config_path, content="x" * 6001))

    with caplog.at_level(logging.ERROR):
        with pytest.raises(SystemExit) as exc:
            cli.main()

    assert exc.value.code == 1
    assert "6001" in caplog.text
