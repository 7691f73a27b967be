from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config import HookConfig
from .errors import WebhookError
from .models import Attachment, MessageBuilder, WebhookResponse
from .structured_logging import configure_hook_logging, log_event
from .transport import wait_for_connection_drivers


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Send a message to a Discord webhook",
    )
    parser.add_argument(
        "--config",
        required=True,
        help="Path to the YAML configuration file",
    )
    parser.add_argument(
        "--content",
        default=None,
        help="Message text to send",
    )
    parser.add_argument(
        "--file",
        dest="files",
        action="append",
        default=[],
        help="Attach a file (may be repeated)",
    )
    parser.add_argument(
        "--execute",
        action="store_true",
        help="POST an empty payload instead of sending a message",
    )
    parser.add_argument(
        "--wait",
        action="store_true",
        help="Ask Discord to confirm the execution (only with --execute)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser.parse_args()


async def run(config: HookConfig, args: argparse.Namespace) -> WebhookResponse:
    webhook = config.create_webhook()
    try:
        if args.execute:
            return await webhook.execute(wait=args.wait)

        builder = config.defaults.apply(MessageBuilder())
        if args.content is not None:
            builder.content(args.content)
        message = builder.build()

        if args.files:
            attachments = [Attachment.from_path(path) for path in args.files]
            return await webhook.send_with_attachments(message, attachments)
        return await webhook.send(message)
    finally:
        await wait_for_connection_drivers()


def main() -> None:
    args = parse_args()
    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    configure_hook_logging(log_level)

    config_path = Path(args.config)
    try:
        config = HookConfig.from_file(config_path)
        response = asyncio.run(run(config, args))
    except (WebhookError, FileNotFoundError, ValueError, OSError) as exc:
        logging.getLogger(__name__).error("Failed to deliver webhook message: %s", exc)
        log_event(
            "delivery_failed",
            level=logging.ERROR,
            webhook_id=None,
            attempt=1,
            outcome="failure",
            latency_ms=None,
            extra={
                "reason": str(exc),
                "error": getattr(exc, "kind", type(exc).__name__),
            },
        )
        sys.exit(1)

    print(response.status_code)
    if response.body:
        print(response.body)


if __name__ == "__main__":
    main()
