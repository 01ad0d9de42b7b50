"""Process-wide logging setup and timing helpers."""

from __future__ import annotations

import logging
import sys
import time
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from lab_allocator.utils.config import get_settings


_LOGGER_INITIALIZED = False


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once; later calls are no-ops."""

    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    resolved_level = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=resolved_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)


def format_fields(**fields: Any) -> str:
    """Render ``key=value`` pairs in the pipe-separated log style."""
    return " | ".join(f"{key}={value}" for key, value in fields.items())


@contextmanager
def log_duration(logger: logging.Logger, event: str, **fields: Any) -> Iterator[None]:
    """Log how long the wrapped block took.

    Success is logged at INFO, failures at WARNING before the exception
    propagates.
    """
    started = time.perf_counter()
    suffix = format_fields(**fields)
    try:
        yield
    except Exception:
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        logger.warning(
            "%s failed | duration_ms=%.2f%s",
            event,
            elapsed_ms,
            f" | {suffix}" if suffix else "",
        )
        raise
    elapsed_ms = (time.perf_counter() - started) * 1000.0
    logger.info(
        "%s finished | duration_ms=%.2f%s",
        event,
        elapsed_ms,
        f" | {suffix}" if suffix else "",
    )
