from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest


def _ensure_src_on_path() -> None:
    root = Path(__file__).resolve().parents[1]
    src = root / "src"
    src_str = str(src)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


_ensure_src_on_path()


@pytest.fixture(autouse=True)
def _propagating_hook_logger() -> Iterator[None]:
    """Let ``caplog`` see structured events even after the CLI configured logging."""

    logger = logging.getLogger("hook")
    handlers = list(logger.handlers)
    propagate = logger.propagate
    level = logger.level
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    yield
    logger.handlers[:] = handlers
    logger.propagate = propagate
    logger.setLevel(level)
