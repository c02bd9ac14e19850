"""
Structured logging for spine-fixtures.

The library only emits events; the test session decides where they go.
Events are named ``<component>.<what_happened>`` (``config_resolver.connected``,
``fixture_loader.table_loaded``) with key/value details, and share the
structlog processor chain of the spine packages so they can be read next to
the application's own logs.

Architecture:
    ::

        configure_logging()              level from SPINE_FIXTURES_LOG_LEVEL
            │
            ↓
        contextvars (fixture_group, ...)
        ISO timestamp
        level / logger name
        library metadata                 library=spine-fixtures, version
        JSONRenderer | ConsoleRenderer
            │
            ↓
        stdlib logging  ──► pytest caplog / the session's handlers

Examples:
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> with fixture_log_context(fixture_group="blog"):
    ...     get_logger(__name__).info("fixture_loader.loaded", rows=3)

Guardrails:
    ❌ DON'T: Call configure_logging() from library modules
    ✅ DO: Call it once from conftest.py or the application

    ❌ DON'T: Log a failure instead of raising it
    ✅ DO: Raise; log lifecycle events only

Tags:
    logging, structlog, observability, spine-fixtures

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from .settings import get_settings

LIBRARY_NAME = "spine-fixtures"


def _add_library(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    from spine_fixtures import __version__

    event_dict.setdefault("library", LIBRARY_NAME)
    event_dict.setdefault("library_version", __version__)
    return event_dict


def configure_logging(
    level: str | None = None,
    *,
    json_format: bool | None = None,
    add_timestamp: bool = True,
    stream: TextIO | None = None,
) -> None:
    """Route spine-fixtures events through structlog and stdlib logging.

    Args:
        level: DEBUG, INFO, WARNING or ERROR. Defaults to the ``log_level``
            setting.
        json_format: JSON lines when True, console output when False, JSON
            unless ``stream`` is a tty when None.
        add_timestamp: Prefix events with an ISO timestamp.
        stream: Where the stdlib root handler writes when no handler is
            installed yet. Defaults to stdout.
    """
    stream = stream or sys.stdout
    numeric_level = getattr(logging, (level or get_settings().log_level).upper())
    if json_format is None:
        json_format = not stream.isatty()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_library,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]
    if add_timestamp:
        processors.insert(1, structlog.processors.TimeStamper(fmt="iso", utc=True))
    processors.append(
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=stream.isatty())
    )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=stream, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    """Structlog logger for a module (``get_logger(__name__)``)."""
    return structlog.get_logger(name)


@contextmanager
def fixture_log_context(**values: Any) -> Iterator[None]:
    """Attach ``values`` to every event logged inside the block.

    Keys bound outside the block are restored on exit.
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield


def bind_context(**values: Any) -> None:
    """Attach ``values`` to every subsequent event in this context."""
    structlog.contextvars.bind_contextvars(**values)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = [
    "LIBRARY_NAME",
    "configure_logging",
    "get_logger",
    "fixture_log_context",
    "bind_context",
    "clear_context",
]
