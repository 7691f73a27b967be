"""Exceptions raised while building and delivering webhook messages."""

from __future__ import annotations

from pathlib import Path

__all__ = [
    "ContentTooLongError",
    "HttpError",
    "InvalidUrlError",
    "IoError",
    "RequestError",
    "SerializeError",
    "StatusError",
    "TlsError",
    "TlsHandshakeError",
    "WebhookError",
]

MAX_CONTENT_LENGTH = 6000


class WebhookError(Exception):
    """Base class for every failure surfaced by the webhook client."""

    kind = "webhook"
    is_local = False


class InvalidUrlError(WebhookError):
    """The target URL is not a Discord webhook URL or cannot be parsed."""

    kind = "invalid_url"
    is_local = True

    def __init__(self, url: str | None = None) -> None:
        super().__init__("Invalid webhook URL")
        self.url = url


class ContentTooLongError(WebhookError):
    kind = "content_too_long"
    is_local = True

    def __init__(self, length: int) -> None:
        super().__init__(
            f"Content too long: {length} characters (max {MAX_CONTENT_LENGTH})"
        )
        self.length = length


class RequestError(WebhookError):
    """Generic rejection of a request before it reaches the network."""

    kind = "request"
    is_local = True

    def __init__(self, message: str) -> None:
        super().__init__(f"Request error: {message}")
        self.message = message


class SerializeError(WebhookError):
    kind = "serialize"
    is_local = True

    def __init__(self, message: str) -> None:
        super().__init__(f"JSON serialization error: {message}")
        self.message = message


class IoError(WebhookError):
    """File or socket failure."""

    kind = "io"

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(f"IO error: {message}")
        self.message = message
        self.path = path


class TlsError(WebhookError):
    kind = "tls"
    label = "TLS error"

    def __init__(self, message: str) -> None:
        super().__init__(f"{self.label}: {message}")
        self.message = message


class TlsHandshakeError(TlsError):
    """The TLS handshake with the remote host failed."""

    kind = "tls_handshake"
    label = "TLS handshake error"


class HttpError(WebhookError):
    """The HTTP exchange broke down after the connection was established."""

    kind = "http"

    def __init__(self, message: str) -> None:
        super().__init__(f"HTTP error: {message}")
        self.message = message


class StatusError(WebhookError):
    """Error raised when the webhook endpoint returns a non-success response."""

    kind = "status"

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"HTTP status error: {status}: {body}")
        self.status = status
        self.body = body
