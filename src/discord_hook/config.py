from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from yaml import YAMLError, safe_load

from .errors import InvalidUrlError
from .models import AllowedMention, MessageBuilder
from .transport import USER_AGENT
from .webhook import Webhook

__all__ = ["HookConfig", "MessageDefaults"]


@dataclass(frozen=True, slots=True)
class MessageDefaults:
    """Values applied to every message sent from the command line."""

    username: str | None = None
    avatar_url: str | None = None
    tts: bool = False
    allowed_mentions: Sequence[AllowedMention] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "allowed_mentions", tuple(self.allowed_mentions))

    def apply(self, builder: MessageBuilder) -> MessageBuilder:
        if self.username:
            builder.username(self.username)
        if self.avatar_url:
            builder.avatar_url(self.avatar_url)
        if self.tts:
            builder.tts(True)
        for mention in self.allowed_mentions:
            builder.allow_mention(mention)
        return builder


@dataclass(frozen=True, slots=True)
class HookConfig:
    url: str
    timeout: float | None = None
    user_agent: str = USER_AGENT
    defaults: MessageDefaults = field(default_factory=MessageDefaults)

    @classmethod
    def from_file(cls, path: Path) -> HookConfig:
        path = path.expanduser()
        return cls.from_mapping(_load_yaml(path))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> HookConfig:
        webhook = data.get("webhook")
        if not isinstance(webhook, Mapping):
            raise ValueError("Configuration field 'webhook' must be a mapping")

        url = str(webhook.get("url") or "").strip()
        if not url:
            raise ValueError("Configuration field 'webhook.url' must not be empty")

        timeout = _parse_timeout(webhook.get("timeout"))
        user_agent = str(webhook.get("user_agent") or USER_AGENT).strip() or USER_AGENT

        return cls(
            url=url,
            timeout=timeout,
            user_agent=user_agent,
            defaults=_parse_defaults(data.get("message")),
        )

    def create_webhook(self) -> Webhook:
        try:
            return Webhook(self.url, timeout=self.timeout, user_agent=self.user_agent)
        except InvalidUrlError as exc:
            raise ValueError(
                "Configuration field 'webhook.url' is not a Discord webhook URL"
            ) from exc


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with path.open("r", encoding="utf-8") as file:
        try:
            data = safe_load(file) or {}
        except YAMLError as exc:
            raise ValueError(f"Configuration file {path} is not valid YAML: {exc}") from exc

    if not isinstance(data, Mapping):
        raise ValueError("Configuration file must contain a mapping at the top level")
    return dict(data)


def _parse_timeout(value: object) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("Configuration field 'webhook.timeout' must be a number")
    try:
        timeout = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError("Configuration field 'webhook.timeout' must be a number") from exc
    if timeout <= 0:
        raise ValueError("Configuration field 'webhook.timeout' must be positive")
    return timeout


def _parse_defaults(value: object) -> MessageDefaults:
    if value is None:
        return MessageDefaults()
    if not isinstance(value, Mapping):
        raise ValueError("Configuration field 'message' must be a mapping if provided")

    mentions_raw = value.get("allowed_mentions") or []
    if isinstance(mentions_raw, str):
        mentions_raw = [mentions_raw]
    if not isinstance(mentions_raw, Sequence):
        raise ValueError("Configuration field 'message.allowed_mentions' must be a list")

    mentions: list[AllowedMention] = []
    for item in mentions_raw:
        candidate = str(item).strip().lower()
        try:
            mentions.append(AllowedMention(candidate))
        except ValueError as exc:
            allowed = ", ".join(member.value for member in AllowedMention)
            raise ValueError(
                f"Configuration field 'message.allowed_mentions' must contain only: {allowed}"
            ) from exc

    username = value.get("username")
    avatar_url = value.get("avatar_url")
    return MessageDefaults(
        username=str(username).strip() if username else None,
        avatar_url=str(avatar_url).strip() if avatar_url else None,
        tts=bool(value.get("tts", False)),
        allowed_mentions=tuple(mentions),
    )
