"""Structured logging setup using structlog."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog


if TYPE_CHECKING:
    from collections.abc import Iterator


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)


@contextmanager
def bind_session(session_id: str) -> Iterator[None]:
    """Bind ``session_id`` to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(session_id=session_id):
        yield


def mask_phone(phone_number: str) -> str:
    """Mask all but the last two digits of a phone number."""
    if len(phone_number) <= 2:
        return "**"
    return "*" * (len(phone_number) - 2) + phone_number[-2:]
