"""``multipart/form-data`` body construction for attachment uploads."""

from __future__ import annotations

import logging
import mimetypes
import secrets
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Final

from .errors import IoError
from .models import Attachment, dump_json

__all__ = [
    "FilePart",
    "MultipartBuilder",
    "MultipartPart",
    "StringPart",
    "encode_message_with_attachments",
]

BOUNDARY_PREFIX: Final = "DiscordWebhookBoundary"
PAYLOAD_FIELD: Final = "payload_json"
_FALLBACK_FILENAME: Final = "attachment"

# Compressed files are sent as the archive type, not the type of what they wrap.
_ENCODING_TYPES: Final = {
    "gzip": "application/gzip",
    "bzip2": "application/x-bzip2",
    "xz": "application/x-xz",
    "compress": "application/x-compress",
    "br": "application/x-brotli",
}

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StringPart:
    value: str


@dataclass(frozen=True, slots=True)
class FilePart:
    filename: str
    content: bytes
    mime_type: str | None = None


MultipartPart = StringPart | FilePart


class MultipartBuilder:
    """Collects named parts and renders them into a single request body.

    Files are read eagerly in :meth:`add_attachment`, so an unreadable path
    fails before :meth:`build` writes anything.
    """

    __slots__ = ("_parts",)

    def __init__(self) -> None:
        self._parts: list[tuple[str, MultipartPart]] = []

    @property
    def parts(self) -> tuple[tuple[str, MultipartPart], ...]:
        return tuple(self._parts)

    def add_text(self, name: str, value: str) -> MultipartBuilder:
        self._parts.append((name, StringPart(value)))
        return self

    def add_json(self, name: str, value: Any) -> MultipartBuilder:
        return self.add_text(name, dump_json(value))

    def add_file(
        self,
        name: str,
        filename: str,
        content: bytes,
        mime_type: str | None = None,
    ) -> MultipartBuilder:
        self._parts.append((name, FilePart(filename, bytes(content), mime_type)))
        return self

    def add_attachment(self, index: int, attachment: Attachment) -> MultipartBuilder:
        path = attachment.path
        try:
            content = path.read_bytes()
        except OSError as exc:
            raise IoError(f"{path}: {exc.strerror or exc}", path=path) from exc

        filename = path.name or _FALLBACK_FILENAME
        mime_type = guess_mime_type(path.name)
        logger.debug(
            "Loaded attachment %s (%d bytes, %s)", filename, len(content), mime_type
        )
        return self.add_file(f"files[{index}]", filename, content, mime_type)

    def build(self) -> tuple[bytes, str]:
        boundary = generate_boundary()
        body = bytearray()

        for name, part in self._parts:
            body += b"--" + boundary.encode("ascii") + b"\r\n"
            body += _part_header(name, part)
            if isinstance(part, FilePart):
                body += part.content
            else:
                body += part.value.encode("utf-8")
            body += b"\r\n"

        body += b"--" + boundary.encode("ascii") + b"--\r\n"
        return bytes(body), f"multipart/form-data; boundary={boundary}"


def guess_mime_type(filename: str) -> str | None:
    mime_type, encoding = mimetypes.guess_type(filename)
    if encoding is not None:
        return _ENCODING_TYPES.get(encoding, "application/octet-stream")
    return mime_type


def generate_boundary() -> str:
    return f"{BOUNDARY_PREFIX}{time.time_ns()}{secrets.token_hex(8)}"


def escape_form_name(value: str) -> str:
    """Escape a form field name: line breaks are dropped, quotes escaped."""

    if not any(char in value for char in '"\r\n'):
        return value
    return value.replace("\r", "").replace("\n", "").replace('"', '\\"')


def escape_filename(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _part_header(name: str, part: MultipartPart) -> bytes:
    disposition = f'Content-Disposition: form-data; name="{escape_form_name(name)}"'
    if isinstance(part, FilePart):
        disposition += f'; filename="{escape_filename(part.filename)}"'
        lines = [disposition]
        if part.mime_type:
            lines.append(f"Content-Type: {part.mime_type}")
    else:
        lines = [disposition]
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")


def encode_message_with_attachments(
    payload: Any, attachments: Sequence[Attachment]
) -> tuple[bytes, str]:
    """Render ``payload`` as ``payload_json`` followed by ``files[i]`` parts."""

    builder = MultipartBuilder().add_json(PAYLOAD_FIELD, payload)
    for index, attachment in enumerate(attachments):
        builder.add_attachment(index, attachment)
    return builder.build()
