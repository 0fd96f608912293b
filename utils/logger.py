"""Logging setup and structured records; receipt text only ever appears as a bounded preview."""

from __future__ import annotations

import logging
import sys
from typing import Any

PREVIEW_LENGTH = 200
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(
    level: str = "INFO",
    format_string: str | None = None,
    stream: Any = None,
) -> None:
    """
    Configure root logger once. Safe to call from main or tests.
    Logs go to stderr so JSON printed on stdout stays machine-readable.
    """
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=format_string or DEFAULT_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=stream or sys.stderr,
        force=True,
    )


def preview(text: str | None, limit: int = PREVIEW_LENGTH) -> str:
    """First `limit` characters of text, with newlines flattened, for log fields."""
    if not text:
        return ""
    flat = " ".join(str(text).split())
    return flat if len(flat) <= limit else flat[:limit] + "..."


def log_structured(logger: logging.Logger, level: int, msg: str, **kwargs: Any) -> None:
    """Emit a log record with extra keys for structured aggregation; keys are appended to the message."""
    if kwargs:
        details = " ".join(f"{k}={v!r}" for k, v in kwargs.items())
        msg = f"{msg} {details}"
    logger.log(level, msg, extra={"fields": kwargs})
