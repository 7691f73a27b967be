from __future__ import annotations

from typing import TypedDict


class EmbedFooterPayload(TypedDict, total=False):
    text: str
    icon_url: str
    proxy_icon_url: str


class EmbedMediaPayload(TypedDict, total=False):
    url: str
    proxy_url: str
    height: int
    width: int


class EmbedProviderPayload(TypedDict, total=False):
    name: str
    url: str


class EmbedAuthorPayload(TypedDict, total=False):
    name: str
    url: str
    icon_url: str
    proxy_icon_url: str


class EmbedFieldPayload(TypedDict, total=False):
    name: str
    value: str
    inline: bool


class EmbedPayload(TypedDict, total=False):
    title: str
    description: str
    url: str
    color: int
    timestamp: str
    footer: EmbedFooterPayload
    image: EmbedMediaPayload
    thumbnail: EmbedMediaPayload
    video: EmbedMediaPayload
    provider: EmbedProviderPayload
    author: EmbedAuthorPayload
    fields: list[EmbedFieldPayload]


class AllowedMentionsPayload(TypedDict, total=False):
    parse: list[str]


class MessagePayload(TypedDict, total=False):
    content: str
    username: str
    avatar_url: str
    embeds: list[EmbedPayload]
    tts: bool
    allowed_mentions: AllowedMentionsPayload
