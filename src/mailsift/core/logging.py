"""Structured logging configuration for mailsift.

Interactive runs (TTY stderr) get colored console output. Anything else
(cron, CI, redirected stderr) gets one JSON object per line.
Operator-facing progress and the summary go to stdout via click, not here.
"""

import logging
import sys

import structlog


_PRIORITY_KEYS = ("timestamp", "level", "component", "event")


def reorder_keys(
    logger: object, method_name: str, event_dict: dict[str, object]
) -> dict[str, object]:
    """Put timestamp, level, component and event first in JSON lines."""
    ordered = {key: event_dict[key] for key in _PRIORITY_KEYS if key in event_dict}
    ordered.update(
        (key, value) for key, value in event_dict.items() if key not in ordered
    )
    return ordered


def configure_logging(log_level: str = "info") -> None:
    """Configure structlog for console (TTY) or JSON output on stderr.

    Args:
        log_level: Level name from the ``logging.level`` config value.
                   Unknown names fall back to INFO.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    processors: list[structlog.types.Processor] = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if sys.stderr.isatty():
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    else:
        processors.extend(
            [structlog.processors.dict_tracebacks, reorder_keys]
        )
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: object) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to a pipeline component name."""
    return structlog.get_logger(component=component, **initial_context)
