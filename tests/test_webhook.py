from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, cast

import aiohttp
import pytest

from discord_hook.errors import (
    ContentTooLongError,
    InvalidUrlError,
    IoError,
    RequestError,
    StatusError,
)
from discord_hook.models import Attachment, Embed, Message, MessageBuilder, WebhookResponse
from discord_hook.transport import HttpsTransport, wait_for_connection_drivers
from discord_hook.webhook import Webhook

WEBHOOK_URL = "https://discord.com/api/webhooks/123/secret-token"


class _RecordingTransport:
    def __init__(self, response: WebhookResponse | Exception | None = None) -> None:
        self._response = response or WebhookResponse(204, "")
        self.calls: list[dict[str, Any]] = []
        self.user_agent = "test-agent"

    async def post(
        self,
        url: str,
        body: bytes,
        content_type: str,
        *,
        check_status: bool = True,
    ) -> WebhookResponse:
        self.calls.append(
            {
                "url": url,
                "body": body,
                "content_type": content_type,
                "check_status": check_status,
            }
        )
        if isinstance(self._response, Exception):
            raise self._response
        return self._response


def _webhook(transport: _RecordingTransport) -> Webhook:
    return Webhook(WEBHOOK_URL, transport=cast(HttpsTransport, transport))


@pytest.mark.parametrize(
    "url",
    [
        "https://discord.com/api/webhooks/1/abc",
        "https://discordapp.com/api/webhooks/1/abc",
        "https://canary.discord.com/api/webhooks/1/abc",
    ],
)
def test_accepts_webhook_urls(url: str) -> None:
    assert Webhook(url).url == url


def test_rejects_non_webhook_url() -> None:
    with pytest.raises(InvalidUrlError) as exc:
        Webhook("https://example.com/not-a-webhook")

    assert exc.value.kind == "invalid_url"


def test_with_timeout_returns_new_handle() -> None:
    webhook = Webhook(WEBHOOK_URL)
    timed = webhook.with_timeout(5)

    assert webhook.timeout is None
    assert timed.timeout == 5
    assert timed.url == WEBHOOK_URL
    assert "secret-token" not in repr(timed)


def test_rejects_non_positive_timeout() -> None:
    with pytest.raises(ValueError):
        Webhook(WEBHOOK_URL, timeout=0)


def test_user_agent_reaches_default_transport() -> None:
    webhook = Webhook(WEBHOOK_URL, user_agent="release-bot/2.0")

    assert webhook._transport.user_agent == "release-bot/2.0"
    assert webhook.with_timeout(3)._transport.user_agent == "release-bot/2.0"


@pytest.mark.asyncio
async def test_send_posts_json() -> None:
    transport = _RecordingTransport()
    message = MessageBuilder().content("Hello, Discord!").build()

    response = await _webhook(transport).send(message)

    assert response == WebhookResponse(status_code=204, body="")
    assert transport.calls == [
        {
            "url": WEBHOOK_URL,
            "body": b'{"content":"Hello, Discord!"}',
            "content_type": "application/json",
            "check_status": True,
        }
    ]


@pytest.mark.asyncio
async def test_send_builds_message_builders() -> None:
    transport = _RecordingTransport()

    await _webhook(transport).send(MessageBuilder().content("built").tts(True))

    assert json.loads(transport.calls[0]["body"]) == {"content": "built", "tts": True}


@pytest.mark.asyncio
async def test_send_validates_before_any_request() -> None:
    transport = _RecordingTransport()
    webhook = _webhook(transport)

    with pytest.raises(ContentTooLongError):
        await webhook.send(Message(content="x" * 6001))
    with pytest.raises(RequestError):
        await webhook.send_with_attachments(
            Message(embeds=tuple(Embed() for _ in range(11))), []
        )

    assert transport.calls == []


@pytest.mark.asyncio
async def test_send_with_attachments_posts_multipart(tmp_path: Path) -> None:
    image = tmp_path / "image.png"
    image.write_bytes(b"\x89PNG fake image")
    transport = _RecordingTransport(WebhookResponse(200, '{"id": "42"}'))
    message = MessageBuilder().content("with file").build()

    response = await _webhook(transport).send_with_attachments(message, [Attachment(image)])

    assert response.json() == {"id": "42"}
    call = transport.calls[0]
    content_type = call["content_type"]
    assert content_type.startswith("multipart/form-data; boundary=DiscordWebhookBoundary")
    boundary = content_type.split("boundary=", 1)[1].encode("ascii")
    body: bytes = call["body"]
    assert body.startswith(b"--" + boundary + b'\r\nContent-Disposition: form-data; name="payload_json"')
    assert b'{"content":"with file"}' in body
    assert b'name="files[0]"; filename="image.png"\r\nContent-Type: image/png\r\n\r\n' in body
    assert b"\x89PNG fake image\r\n" in body
    assert body.endswith(b"--" + boundary + b"--\r\n")


@pytest.mark.asyncio
async def test_send_with_empty_attachment_list_still_uses_multipart() -> None:
    transport = _RecordingTransport()

    await _webhook(transport).send_with_attachments(MessageBuilder().content("x").build(), [])

    assert transport.calls[0]["content_type"].startswith("multipart/form-data")


@pytest.mark.asyncio
async def test_missing_attachment_fails_before_connecting(tmp_path: Path) -> None:
    created: list[object] = []

    def factory(*args: object) -> aiohttp.ClientSession:
        created.append(args)
        raise AssertionError("no connection expected")

    webhook = Webhook(WEBHOOK_URL, transport=HttpsTransport(session_factory=factory))
    message = MessageBuilder().content("Hello").build()

    with pytest.raises(IoError):
        await webhook.send_with_attachments(message, [Attachment(tmp_path / "missing.png")])

    assert created == []


@pytest.mark.asyncio
async def test_status_errors_propagate_and_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    transport = _RecordingTransport(StatusError(400, '{"message": "Cannot send an empty message"}'))

    with caplog.at_level(logging.DEBUG, logger="hook"):
        with pytest.raises(StatusError) as exc:
            await _webhook(transport).send(Message())

    assert exc.value.status == 400
    assert "webhook_send_failed" in caplog.text
    assert "secret-token" not in caplog.text


@pytest.mark.asyncio
async def test_execute_posts_empty_object_without_status_mapping() -> None:
    transport = _RecordingTransport(WebhookResponse(404, "missing"))
    webhook = _webhook(transport)

    plain = await webhook.execute()
    confirmed = await webhook.execute(wait=True)

    assert plain == WebhookResponse(404, "missing")
    assert confirmed.status_code == 404
    assert transport.calls == [
        {
            "url": WEBHOOK_URL,
            "body": b"{}",
            "content_type": "application/json",
            "check_status": False,
        },
        {
            "url": f"{WEBHOOK_URL}?wait=true",
            "body": b"{}",
            "content_type": "application/json",
            "check_status": False,
        },
    ]


@pytest.mark.asyncio
async def test_end_to_end_with_fake_session() -> None:
    class _Response:
        status = 204

        async def __aenter__(self) -> "_Response":
            return self

        async def __aexit__(self, *exc_info: object) -> None:
            return None

        async def read(self) -> bytes:
            return b""

    class _Session:
        def __init__(self) -> None:
            self.urls: list[str] = []

        def post(self, url: str, **kwargs: object) -> _Response:
            self.urls.append(url)
            return _Response()

        async def close(self) -> None:
            return None

    session = _Session()
    transport = HttpsTransport(
        session_factory=lambda *_: cast(aiohttp.ClientSession, session)
    )
    webhook = Webhook(WEBHOOK_URL, transport=transport)

    response = await webhook.send(MessageBuilder().content("Hello, Discord!").build())
    await wait_for_connection_drivers()

    assert response == WebhookResponse(status_code=204, body="")
    assert session.urls == [WEBHOOK_URL]
