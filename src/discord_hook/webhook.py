"""High level webhook handle used by applications."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from time import perf_counter

from .errors import InvalidUrlError, WebhookError
from .models import Attachment, Message, MessageBuilder, WebhookResponse
from .multipart import encode_message_with_attachments
from .structured_logging import log_event, webhook_id_from_url
from .transport import USER_AGENT, HttpsTransport

__all__ = ["WEBHOOK_PATH_MARKERS", "Webhook"]

WEBHOOK_PATH_MARKERS = (
    "discord.com/api/webhooks/",
    "discordapp.com/api/webhooks/",
)
JSON_CONTENT_TYPE = "application/json"


class Webhook:
    """Immutable handle for a single Discord webhook URL.

    The handle keeps no connection between calls; every send opens a new TLS
    connection through :class:`~discord_hook.transport.HttpsTransport`.
    """

    __slots__ = ("_url", "_timeout", "_transport")

    def __init__(
        self,
        url: str,
        *,
        timeout: float | None = None,
        user_agent: str = USER_AGENT,
        transport: HttpsTransport | None = None,
    ) -> None:
        if not any(marker in url for marker in WEBHOOK_PATH_MARKERS):
            raise InvalidUrlError(url)
        if timeout is not None and timeout <= 0:
            raise ValueError("Webhook timeout must be positive")
        self._url = url
        self._timeout = timeout
        self._transport = transport or HttpsTransport(
            user_agent=user_agent, timeout=timeout
        )

    def __repr__(self) -> str:
        return f"Webhook(id={self.webhook_id!r}, timeout={self._timeout!r})"

    @property
    def url(self) -> str:
        return self._url

    @property
    def timeout(self) -> float | None:
        return self._timeout

    @property
    def webhook_id(self) -> str | None:
        return webhook_id_from_url(self._url)

    def with_timeout(self, seconds: float) -> Webhook:
        return Webhook(
            self._url,
            timeout=seconds,
            user_agent=self._transport.user_agent,
        )

    async def send(self, message: Message | MessageBuilder) -> WebhookResponse:
        return await self._send(message, None)

    async def send_with_attachments(
        self,
        message: Message | MessageBuilder,
        attachments: Sequence[Attachment],
    ) -> WebhookResponse:
        return await self._send(message, list(attachments))

    async def execute(self, wait: bool = False) -> WebhookResponse:
        """POST an empty JSON object and return the raw response.

        Unlike :meth:`send`, non-2xx responses are returned rather than raised.
        """

        url = f"{self._url}?wait=true" if wait else self._url
        return await self._transport.post(
            url, b"{}", JSON_CONTENT_TYPE, check_status=False
        )

    async def _send(
        self,
        message: Message | MessageBuilder,
        attachments: list[Attachment] | None,
    ) -> WebhookResponse:
        validated = _validated(message)

        if attachments is None:
            body = validated.to_json().encode("utf-8")
            content_type = JSON_CONTENT_TYPE
        else:
            body, content_type = encode_message_with_attachments(
                validated.to_payload(), attachments
            )

        extra = {
            "attachments": len(attachments) if attachments is not None else 0,
            "embeds": len(validated.embeds),
            "body_bytes": len(body),
        }
        log_event(
            "webhook_send_started",
            level=logging.DEBUG,
            webhook_id=self.webhook_id,
            attempt=1,
            outcome=None,
            latency_ms=None,
            extra=extra,
        )
        start = perf_counter()
        try:
            response = await self._transport.post(self._url, body, content_type)
        except WebhookError as exc:
            log_event(
                "webhook_send_failed",
                level=logging.WARNING,
                webhook_id=self.webhook_id,
                attempt=1,
                outcome="failure",
                latency_ms=(perf_counter() - start) * 1000,
                extra={**extra, "error": exc.kind, "reason": str(exc)},
            )
            raise

        log_event(
            "webhook_send_succeeded",
            level=logging.INFO,
            webhook_id=self.webhook_id,
            attempt=1,
            outcome="success",
            latency_ms=(perf_counter() - start) * 1000,
            extra={**extra, "status": response.status_code},
        )
        return response


def _validated(message: Message | MessageBuilder) -> Message:
    if isinstance(message, MessageBuilder):
        return message.build()
    return message.validate()
