from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping, MutableMapping
from typing import Any, Final

HOOK_LOGGER_NAME: Final = "hook"
_REDACT_KEYS: Final = {"token", "authorization"}
_MAX_STRING_LENGTH: Final = 512
_WEBHOOK_TOKEN_RE: Final = re.compile(r"(/api/webhooks/[^/?#\s]+/)[^/?#\s]+")
_WEBHOOK_ID_RE: Final = re.compile(r"/api/webhooks/([^/?#\s]+)")
_LOGGER = logging.getLogger(HOOK_LOGGER_NAME)


def configure_hook_logging(level: int) -> None:
    logger = _LOGGER
    if logger.handlers:
        logger.setLevel(level)
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def redact_webhook_url(url: str) -> str:
    """Return ``url`` with the webhook token segment masked."""

    return _WEBHOOK_TOKEN_RE.sub(r"\1***", url)


def webhook_id_from_url(url: str) -> str | None:
    match = _WEBHOOK_ID_RE.search(url)
    return match.group(1) if match else None


def log_event(
    event: str,
    *,
    level: int,
    webhook_id: str | None,
    attempt: int | None,
    outcome: str | None,
    latency_ms: float | None,
    extra: Mapping[str, Any] | None = None,
) -> None:
    payload: MutableMapping[str, Any] = {
        "event": event,
        "webhook_id": webhook_id,
        "attempt": attempt,
        "outcome": outcome,
        "latency_ms": round(latency_ms, 3) if latency_ms is not None else None,
    }

    if extra:
        for key, value in extra.items():
            if key is None:
                continue
            key_text = str(key)
            lower_key = key_text.lower()
            if lower_key in _REDACT_KEYS:
                payload[key_text] = "***"
                continue
            payload[key_text] = _sanitize_value(value)

    _LOGGER.log(level, json.dumps(payload, ensure_ascii=False, separators=(",", ":")))


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, str):
        value = redact_webhook_url(value)
        if len(value) > _MAX_STRING_LENGTH:
            return f"{value[:_MAX_STRING_LENGTH]}…"
        return value
    if isinstance(value, bool | int | float) or value is None:
        return value
    return _sanitize_value(str(value))
