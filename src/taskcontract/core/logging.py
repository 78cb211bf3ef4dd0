"""
Structured logging for taskcontract.

Registration, dispatch and client calls all report through structlog. Event
names are dotted (``operation.completed``, ``registration.orphan_implementations``)
and the dispatch coordinates (task queue, workflow, operation, kind) travel as
key-value pairs, so the host can route and filter on them next to its own logs.

Architecture:
    ::

        configure_logging(level, json_format, service)
          │
          ├── build_processors()
          │     TimeStamper(iso, utc)        optional
          │     merge_contextvars            ◄── LogContext / bind_context
          │     add_log_level, add_logger_name
          │     ServiceName(service)
          │     ecs_fields                   JSON only: @timestamp, log.level, log.logger
          │     JSONRenderer | ConsoleRenderer
          │
          └── stdlib root logger on stderr at the same level

        async with LogContext(task_queue="orders", workflow="processOrder"):
            logger.info("operation.completed", operation="chargeCard")

Examples:
    >>> from taskcontract.core.logging import configure_logging, get_logger
    >>> configure_logging(level="INFO", json_format=True, service="orders-worker")
    >>> get_logger(__name__).info("operation.dispatched", operation="chargeCard")

Tags:
    logging, structlog, observability, ecs, taskcontract

Doc-Types:
    - API Reference
    - Observability Guide
"""

from __future__ import annotations

import contextvars
import logging
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_LEVELS: Mapping[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# structlog key → ECS field name
_ECS_RENAMES: Mapping[str, str] = {
    "timestamp": "@timestamp",
    "level": "log.level",
    "logger": "log.logger",
}


def resolve_level(level: str | int) -> int:
    """Numeric level for ``level``; names are case-insensitive.

    Raises:
        ValueError: ``level`` is not a known level name
    """
    if isinstance(level, int):
        return level
    try:
        return _LEVELS[level.upper()]
    except KeyError:
        raise ValueError(f"Unknown log level: {level!r}") from None


@dataclass(frozen=True)
class ServiceName:
    """Processor stamping ``service.name`` on every event."""

    service: str

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service.name", self.service)
        return event_dict


def ecs_fields(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename structlog's standard keys to their ECS field names."""
    for key, ecs_key in _ECS_RENAMES.items():
        if key in event_dict:
            event_dict[ecs_key] = event_dict.pop(key)
    return event_dict


def build_processors(
    *,
    json_format: bool,
    service: str = "taskcontract",
    add_timestamp: bool = True,
) -> list[Processor]:
    """The processor chain ``configure_logging`` installs."""
    processors: list[Processor] = []
    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    processors += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        ServiceName(service),
    ]
    if json_format:
        processors += [
            structlog.processors.format_exc_info,
            ecs_fields,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


def configure_logging(
    level: str | int = "INFO",
    json_format: bool | None = None,
    service: str = "taskcontract",
    add_timestamp: bool = True,
    cache_logger_on_first_use: bool = True,
) -> None:
    """Configure structlog for the process.

    Args:
        level: Level name or number; events below it are dropped before rendering
        json_format: ``True`` for JSON, ``False`` for console, ``None`` picks
            JSON unless stderr is a terminal
        service: Value of ``service.name`` on every event
        add_timestamp: Stamp events with an ISO-8601 UTC timestamp
        cache_logger_on_first_use: Freeze loggers after their first call.
            Turn off when the configuration is swapped at runtime (tests).

    Raises:
        ValueError: ``level`` is not a known level name
    """
    numeric_level = resolve_level(level)
    if json_format is None:
        json_format = not sys.stderr.isatty()

    structlog.configure(
        processors=build_processors(json_format=json_format, service=service, add_timestamp=add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=cache_logger_on_first_use,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr)
    logging.getLogger().setLevel(numeric_level)


def configure_from_settings(**overrides: Any) -> None:
    """Configure logging from ``ContractSettings`` (``TASKCONTRACT_LOG_*``)."""
    from taskcontract.core.settings import get_settings

    settings = get_settings()
    options: dict[str, Any] = {
        "level": settings.log_level,
        "json_format": settings.log_format == "json",
        "service": settings.service_name,
    }
    options.update(overrides)
    configure_logging(**options)


def get_logger(name: str | None = None) -> Any:
    """Structured logger for ``name`` (usually ``__name__``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach ``kwargs`` to every event logged from the current context.

    Example:
        bind_context(task_queue="orders", workflow="processOrder")
        logger.info("workflow.started")  # carries task_queue and workflow
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Scoped logging context, usable with ``with`` and ``async with``.

    Leaving the block restores the values the keys had on entry, so nested
    scopes (a workflow dispatching an update, say) unwind correctly.

    Example:
        async with LogContext(task_queue="orders", workflow="processOrder"):
            logger.info("workflow.started")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs
        self._tokens: Mapping[str, contextvars.Token[Any]] = {}

    def __enter__(self) -> LogContext:
        self._tokens = structlog.contextvars.bind_contextvars(**self._context)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)
        self._tokens = {}

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, *exc_info: Any) -> None:
        self.__exit__(*exc_info)


__all__ = [
    "LogContext",
    "ServiceName",
    "bind_context",
    "build_processors",
    "clear_context",
    "configure_from_settings",
    "configure_logging",
    "ecs_fields",
    "get_logger",
    "resolve_level",
    "unbind_context",
]
