"""Structured logging configuration using structlog with async context propagation.

Tournament specifics: Decimal fields render as plain strings, and a tick
number bound with ``tick_context`` follows every line logged during that tick,
including lines from concurrently processed agents.
"""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal

import structlog
from structlog.types import EventDict, WrappedLogger


def stringify_decimals(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Render Decimal values as plain strings (``31.42``, not ``Decimal('31.42')``)."""
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = str(value)
    return event_dict


@contextmanager
def tick_context(tick: int) -> Iterator[None]:
    """Bind ``tick`` to every log line emitted inside the block."""
    structlog.contextvars.bind_contextvars(tick=tick)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars("tick")


def setup_logging(log_level: str = "INFO") -> None:
    """Configure structlog with JSON or console rendering.

    Uses structlog.contextvars so the tick bound by ``tick_context`` follows
    every log line emitted while that tick runs.
    Rendering format is controlled by the LOG_FORMAT environment variable:
    - "json" for production (machine-readable)
    - "console" for development (human-readable, default)
    """
    log_format = os.environ.get("LOG_FORMAT", "console").lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        stringify_decimals,
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # uvicorn access lines duplicate the API's own structured events
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
