#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import sys
import tempfile
from pathlib import Path
from time import perf_counter
from typing import cast

ROOT = Path(__file__).resolve().parent.parent
SRC_PATH = ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.append(str(SRC_PATH))

from discord_hook.models import (  # noqa: E402
    AllowedMention,
    Attachment,
    Embed,
    EmbedAuthor,
    EmbedFooter,
    Message,
    MessageBuilder,
    WebhookResponse,
)
from discord_hook.multipart import encode_message_with_attachments  # noqa: E402
from discord_hook.transport import HttpsTransport  # noqa: E402
from discord_hook.webhook import Webhook  # noqa: E402

_WEBHOOK_URL = "https://discord.com/api/webhooks/1/benchmark"


def _make_sample_message() -> Message:
    embed = Embed(
        title="Highlights",
        description="Key details of the announcement",
        color=0x5865F2,
        footer=EmbedFooter("Release pipeline"),
        author=EmbedAuthor("Reporter", icon_url="https://cdn.example.com/avatar.png"),
    )
    embed = embed.with_field("Status", "Ready", inline=True).with_field("Priority", "High")
    return (
        MessageBuilder()
        .content("Update for <@123> with attachment")
        .username("Status Bot")
        .embed(embed)
        .allow_mention(AllowedMention.USERS)
        .build()
    )


class _NullTransport:
    __slots__ = ("user_agent",)

    def __init__(self) -> None:
        self.user_agent = "bench"

    async def post(
        self,
        url: str,
        body: bytes,
        content_type: str,
        *,
        check_status: bool = True,
    ) -> WebhookResponse:
        return WebhookResponse(204, "")


def benchmark_json(iterations: int) -> None:
    message = _make_sample_message()
    start = perf_counter()
    for _ in range(iterations):
        message.validate().to_json()
    elapsed = perf_counter() - start
    throughput = iterations / elapsed if elapsed else float("inf")
    print(f"json: {iterations} iterations in {elapsed:.3f}s ({throughput:.1f} msg/s)")


def benchmark_multipart(iterations: int, size_kb: int = 256) -> None:
    message = _make_sample_message()
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "report.pdf"
        path.write_bytes(b"\x00\x01binary" * (size_kb * 128))
        attachments = [Attachment(path), Attachment(path, "copy")]
        start = perf_counter()
        for _ in range(iterations):
            encode_message_with_attachments(message.to_payload(), attachments)
        elapsed = perf_counter() - start
    throughput = iterations / elapsed if elapsed else float("inf")
    print(f"multipart: {iterations} iterations in {elapsed:.3f}s ({throughput:.1f} msg/s)")


async def benchmark_sending(iterations: int) -> None:
    webhook = Webhook(_WEBHOOK_URL, transport=cast(HttpsTransport, _NullTransport()))
    message = _make_sample_message()
    start = perf_counter()
    for _ in range(iterations):
        await webhook.send(message)
    elapsed = perf_counter() - start
    throughput = iterations / elapsed if elapsed else float("inf")
    print(f"sending: {iterations} iterations in {elapsed:.3f}s ({throughput:.1f} msg/s)")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Benchmark message encoding hot paths",
    )
    parser.add_argument(
        "--json-count",
        type=int,
        default=5000,
        help="Number of JSON encoding iterations",
    )
    parser.add_argument(
        "--multipart-count",
        type=int,
        default=200,
        help="Number of multipart encoding iterations",
    )
    parser.add_argument(
        "--send-count",
        type=int,
        default=1000,
        help="Number of send iterations against a null transport",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    benchmark_json(args.json_count)
    benchmark_multipart(args.multipart_count)
    asyncio.run(benchmark_sending(args.send_count))


if __name__ == "__main__":
    main()
