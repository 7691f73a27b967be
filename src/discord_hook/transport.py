"""One-shot HTTPS transport: a fresh TLS connection for every request."""

from __future__ import annotations

import asyncio
import logging
import ssl
from collections.abc import Callable
from dataclasses import dataclass
from time import perf_counter
from typing import Final
from urllib.parse import urlsplit, urlunsplit

import aiohttp

from .errors import (
    HttpError,
    InvalidUrlError,
    IoError,
    RequestError,
    StatusError,
    TlsError,
    TlsHandshakeError,
)
from .models import WebhookResponse
from .structured_logging import log_event, redact_webhook_url, webhook_id_from_url

__all__ = [
    "DEFAULT_PORT",
    "USER_AGENT",
    "HttpsTransport",
    "SessionFactory",
    "wait_for_connection_drivers",
]

USER_AGENT: Final = "discord-hook (https://github.com/discord-hook, 0.1.0)"
DEFAULT_PORT: Final = 443

SessionFactory = Callable[[ssl.SSLContext, aiohttp.ClientTimeout], aiohttp.ClientSession]

_CONNECTION_DRIVERS: set[asyncio.Task[None]] = set()

logger = logging.getLogger(__name__)


def _default_session_factory(
    ssl_context: ssl.SSLContext, timeout: aiohttp.ClientTimeout
) -> aiohttp.ClientSession:
    connector = aiohttp.TCPConnector(ssl=ssl_context, force_close=True, limit=1)
    return aiohttp.ClientSession(connector=connector, timeout=timeout)


@dataclass(frozen=True, slots=True)
class RequestTarget:
    host: str
    port: int
    url: str


def resolve_target(url: str) -> RequestTarget:
    """Split ``url`` into host, port and the HTTPS URL actually requested."""

    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as exc:
        raise InvalidUrlError(url) from exc

    host = parts.hostname
    if not host:
        raise RequestError("Missing host")

    port = port or DEFAULT_PORT
    netloc = f"[{host}]" if ":" in host else host
    if port != DEFAULT_PORT:
        netloc = f"{netloc}:{port}"
    target = urlunsplit(("https", netloc, parts.path or "/", parts.query, ""))
    return RequestTarget(host, port, target)


class HttpsTransport:
    """Delivers a single POST request over its own TLS connection."""

    __slots__ = ("_user_agent", "_timeout", "_session_factory")

    def __init__(
        self,
        *,
        user_agent: str = USER_AGENT,
        timeout: float | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self._user_agent = user_agent
        self._timeout = timeout
        self._session_factory = session_factory or _default_session_factory

    @property
    def timeout(self) -> float | None:
        return self._timeout

    @property
    def user_agent(self) -> str:
        return self._user_agent

    async def post(
        self,
        url: str,
        body: bytes,
        content_type: str,
        *,
        check_status: bool = True,
    ) -> WebhookResponse:
        target = resolve_target(url)
        headers = {
            "User-Agent": self._user_agent,
            "Host": target.host,
            "Content-Type": content_type,
        }

        try:
            ssl_context = ssl.create_default_context()
        except ssl.SSLError as exc:
            raise TlsError(str(exc)) from exc

        # total=None disables aiohttp's implicit five minute limit.
        timeout = aiohttp.ClientTimeout(total=self._timeout)
        session = self._session_factory(ssl_context, timeout)
        webhook_id = webhook_id_from_url(url)
        start = perf_counter()
        try:
            async with session.post(
                target.url, data=body, headers=headers, allow_redirects=False
            ) as response:
                status = response.status
                raw = await response.read()
        except aiohttp.ClientSSLError as exc:
            await _close_quietly(session)
            raise TlsHandshakeError(str(exc)) from exc
        except aiohttp.InvalidURL as exc:
            await _close_quietly(session)
            raise InvalidUrlError(url) from exc
        except asyncio.TimeoutError as exc:
            await _close_quietly(session)
            raise IoError(f"timed out after {self._timeout}s") from exc
        except OSError as exc:
            await _close_quietly(session)
            raise IoError(str(exc) or type(exc).__name__) from exc
        except aiohttp.ClientError as exc:
            await _close_quietly(session)
            raise HttpError(str(exc) or type(exc).__name__) from exc

        _spawn_connection_driver(session, webhook_id)

        elapsed_ms = (perf_counter() - start) * 1000
        text = raw.decode("utf-8", errors="replace")
        log_event(
            "webhook_http_exchange",
            level=logging.DEBUG,
            webhook_id=webhook_id,
            attempt=1,
            outcome="success" if 200 <= status < 300 else "failure",
            latency_ms=elapsed_ms,
            extra={
                "url": redact_webhook_url(target.url),
                "status": status,
                "request_bytes": len(body),
            },
        )

        if check_status and not 200 <= status < 300:
            raise StatusError(status, text)
        return WebhookResponse(status_code=status, body=text)


def _spawn_connection_driver(session: aiohttp.ClientSession, webhook_id: str | None) -> None:
    task = asyncio.create_task(_drive_connection(session, webhook_id))
    _CONNECTION_DRIVERS.add(task)
    task.add_done_callback(_CONNECTION_DRIVERS.discard)


async def _drive_connection(session: aiohttp.ClientSession, webhook_id: str | None) -> None:
    try:
        await session.close()
    except Exception as exc:  # noqa: BLE001
        log_event(
            "connection_driver_failed",
            level=logging.WARNING,
            webhook_id=webhook_id,
            attempt=None,
            outcome="ignored",
            latency_ms=None,
            extra={"error": type(exc).__name__, "reason": str(exc)},
        )


async def _close_quietly(session: aiohttp.ClientSession) -> None:
    try:
        await session.close()
    except Exception:  # noqa: BLE001
        logger.debug("Failed to close session after request error", exc_info=True)


async def wait_for_connection_drivers() -> None:
    """Wait until every detached connection driver has finished."""

    loop = asyncio.get_running_loop()
    pending = [task for task in _CONNECTION_DRIVERS if task.get_loop() is loop]
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
