"""Data models describing outgoing webhook messages."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum
from os import PathLike
from pathlib import Path
from typing import Any

from .errors import MAX_CONTENT_LENGTH, ContentTooLongError, RequestError, SerializeError
from .types import (
    AllowedMentionsPayload,
    EmbedAuthorPayload,
    EmbedFieldPayload,
    EmbedFooterPayload,
    EmbedMediaPayload,
    EmbedPayload,
    EmbedProviderPayload,
    MessagePayload,
)

MAX_EMBEDS = 10

__all__ = [
    "MAX_CONTENT_LENGTH",
    "MAX_EMBEDS",
    "AllowedMention",
    "AllowedMentions",
    "Attachment",
    "Embed",
    "EmbedAuthor",
    "EmbedField",
    "EmbedFooter",
    "EmbedMedia",
    "EmbedProvider",
    "Message",
    "MessageBuilder",
    "WebhookResponse",
]


class AllowedMention(StrEnum):
    """Mention categories Discord is allowed to resolve in a message."""

    USERS = "users"
    ROLES = "roles"
    EVERYONE = "everyone"


@dataclass(frozen=True, slots=True)
class AllowedMentions:
    parse: tuple[AllowedMention, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "parse", tuple(AllowedMention(item) for item in self.parse)
        )

    def with_mention(self, mention: AllowedMention | str) -> AllowedMentions:
        return AllowedMentions(parse=(*self.parse, AllowedMention(mention)))

    def to_payload(self) -> AllowedMentionsPayload | None:
        if not self.parse:
            return None
        return {"parse": [item.value for item in self.parse]}


@dataclass(frozen=True, slots=True)
class EmbedFooter:
    text: str
    icon_url: str | None = None
    proxy_icon_url: str | None = None

    def to_payload(self) -> EmbedFooterPayload:
        payload: EmbedFooterPayload = {"text": self.text}
        if self.icon_url is not None:
            payload["icon_url"] = self.icon_url
        if self.proxy_icon_url is not None:
            payload["proxy_icon_url"] = self.proxy_icon_url
        return payload


@dataclass(frozen=True, slots=True)
class EmbedMedia:
    """Image, thumbnail or video reference inside an embed."""

    url: str
    proxy_url: str | None = None
    height: int | None = None
    width: int | None = None

    def to_payload(self) -> EmbedMediaPayload:
        payload: EmbedMediaPayload = {"url": self.url}
        if self.proxy_url is not None:
            payload["proxy_url"] = self.proxy_url
        if self.height is not None:
            payload["height"] = self.height
        if self.width is not None:
            payload["width"] = self.width
        return payload


@dataclass(frozen=True, slots=True)
class EmbedProvider:
    name: str | None = None
    url: str | None = None

    def to_payload(self) -> EmbedProviderPayload:
        payload: EmbedProviderPayload = {}
        if self.name is not None:
            payload["name"] = self.name
        if self.url is not None:
            payload["url"] = self.url
        return payload


@dataclass(frozen=True, slots=True)
class EmbedAuthor:
    name: str
    url: str | None = None
    icon_url: str | None = None
    proxy_icon_url: str | None = None

    def to_payload(self) -> EmbedAuthorPayload:
        payload: EmbedAuthorPayload = {"name": self.name}
        if self.url is not None:
            payload["url"] = self.url
        if self.icon_url is not None:
            payload["icon_url"] = self.icon_url
        if self.proxy_icon_url is not None:
            payload["proxy_icon_url"] = self.proxy_icon_url
        return payload


@dataclass(frozen=True, slots=True)
class EmbedField:
    name: str
    value: str
    inline: bool = False

    def to_payload(self) -> EmbedFieldPayload:
        payload: EmbedFieldPayload = {"name": self.name, "value": self.value}
        if self.inline:
            payload["inline"] = True
        return payload


@dataclass(frozen=True, slots=True)
class Embed:
    """Rich embed attached to a message.

    Embeds are passed through to Discord untouched; Discord performs its own
    validation of titles, field counts and so on.  ``timestamp`` may be given
    as an ISO-8601 string or as a :class:`~datetime.datetime`, which is
    converted on construction (naive values are assumed to be UTC).
    """

    title: str | None = None
    description: str | None = None
    url: str | None = None
    color: int | None = None
    timestamp: str | datetime | None = None
    footer: EmbedFooter | None = None
    image: EmbedMedia | None = None
    thumbnail: EmbedMedia | None = None
    video: EmbedMedia | None = None
    provider: EmbedProvider | None = None
    author: EmbedAuthor | None = None
    fields: tuple[EmbedField, ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.timestamp, datetime):
            moment = self.timestamp
            if moment.tzinfo is None:
                moment = moment.replace(tzinfo=UTC)
            object.__setattr__(self, "timestamp", moment.isoformat())
        object.__setattr__(self, "fields", tuple(self.fields))

    def with_field(self, name: str, value: str, *, inline: bool = False) -> Embed:
        return replace(self, fields=(*self.fields, EmbedField(name, value, inline)))

    def with_footer(self, text: str, *, icon_url: str | None = None) -> Embed:
        return replace(self, footer=EmbedFooter(text, icon_url=icon_url))

    def with_author(
        self,
        name: str,
        *,
        url: str | None = None,
        icon_url: str | None = None,
    ) -> Embed:
        return replace(self, author=EmbedAuthor(name, url=url, icon_url=icon_url))

    def with_image(self, url: str) -> Embed:
        return replace(self, image=EmbedMedia(url))

    def with_thumbnail(self, url: str) -> Embed:
        return replace(self, thumbnail=EmbedMedia(url))

    def to_payload(self) -> EmbedPayload:
        payload: EmbedPayload = {}
        if self.title is not None:
            payload["title"] = self.title
        if self.description is not None:
            payload["description"] = self.description
        if self.url is not None:
            payload["url"] = self.url
        if self.color is not None:
            payload["color"] = self.color
        if self.timestamp is not None:
            payload["timestamp"] = str(self.timestamp)
        if self.footer is not None:
            payload["footer"] = self.footer.to_payload()
        if self.image is not None:
            payload["image"] = self.image.to_payload()
        if self.thumbnail is not None:
            payload["thumbnail"] = self.thumbnail.to_payload()
        if self.video is not None:
            payload["video"] = self.video.to_payload()
        if self.provider is not None:
            payload["provider"] = self.provider.to_payload()
        if self.author is not None:
            payload["author"] = self.author.to_payload()
        if self.fields:
            payload["fields"] = [item.to_payload() for item in self.fields]
        return payload


@dataclass(frozen=True, slots=True)
class Message:
    """Validated, immutable webhook message."""

    content: str | None = None
    username: str | None = None
    avatar_url: str | None = None
    embeds: tuple[Embed, ...] = ()
    tts: bool = False
    allowed_mentions: AllowedMentions | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "embeds", tuple(self.embeds))

    def validate(self) -> Message:
        if self.content is not None and len(self.content) > MAX_CONTENT_LENGTH:
            raise ContentTooLongError(len(self.content))
        if len(self.embeds) > MAX_EMBEDS:
            raise RequestError(f"Too many embeds (max {MAX_EMBEDS})")
        return self

    def to_payload(self) -> MessagePayload:
        payload: MessagePayload = {}
        if self.content is not None:
            payload["content"] = self.content
        if self.username is not None:
            payload["username"] = self.username
        if self.avatar_url is not None:
            payload["avatar_url"] = self.avatar_url
        if self.embeds:
            payload["embeds"] = [embed.to_payload() for embed in self.embeds]
        if self.tts:
            payload["tts"] = True
        if self.allowed_mentions is not None:
            mentions = self.allowed_mentions.to_payload()
            if mentions is not None:
                payload["allowed_mentions"] = mentions
        return payload

    def to_json(self) -> str:
        return dump_json(self.to_payload())


def dump_json(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise SerializeError(str(exc)) from exc


class MessageBuilder:
    """Fluent accumulator for :class:`Message` values."""

    __slots__ = (
        "_content",
        "_username",
        "_avatar_url",
        "_embeds",
        "_tts",
        "_allowed_mentions",
    )

    def __init__(self) -> None:
        self._content: str | None = None
        self._username: str | None = None
        self._avatar_url: str | None = None
        self._embeds: list[Embed] = []
        self._tts = False
        self._allowed_mentions: AllowedMentions | None = None

    def content(self, content: str) -> MessageBuilder:
        self._content = content
        return self

    def username(self, username: str) -> MessageBuilder:
        self._username = username
        return self

    def avatar_url(self, url: str) -> MessageBuilder:
        self._avatar_url = url
        return self

    def embed(self, embed: Embed) -> MessageBuilder:
        self._embeds.append(embed)
        return self

    def embeds(self, embeds: Iterable[Embed]) -> MessageBuilder:
        self._embeds.extend(embeds)
        return self

    def tts(self, tts: bool) -> MessageBuilder:
        self._tts = bool(tts)
        return self

    def allow_mention(self, mention: AllowedMention | str) -> MessageBuilder:
        current = self._allowed_mentions or AllowedMentions()
        self._allowed_mentions = current.with_mention(mention)
        return self

    def build(self) -> Message:
        message = Message(
            content=self._content,
            username=self._username,
            avatar_url=self._avatar_url,
            embeds=tuple(self._embeds),
            tts=self._tts,
            allowed_mentions=self._allowed_mentions,
        )
        return message.validate()


@dataclass(frozen=True, slots=True)
class Attachment:
    """File on disk to upload next to a message."""

    path: Path
    description: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.path, Path):
            object.__setattr__(self, "path", Path(self.path))

    @classmethod
    def from_path(
        cls, path: str | PathLike[str], description: str | None = None
    ) -> Attachment:
        return cls(Path(path), description)


@dataclass(frozen=True, slots=True)
class WebhookResponse:
    status_code: int
    body: str = field(default="")

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decode the response body, returning ``None`` for an empty body."""

        if not self.body.strip():
            return None
        return json.loads(self.body)
