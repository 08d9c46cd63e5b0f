"""Structured logging for graph editing sessions.

Every event goes through one structlog chain and is rendered per sink by a
``ProcessorFormatter``:

- console: RichHandler on stderr, ``event key=value`` lines, level from -v
- file (--log): one JSON object per line in ``{log_dir}/debug.jsonl``

Events emitted while a :class:`GraphStore` method runs carry the
``graph_id`` of the graph being edited (see :func:`graph_log_context`).
"""

from __future__ import annotations

import logging
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import TYPE_CHECKING, Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

    from structlog.typing import EventDict, Processor, WrappedLogger

DEBUG_LOG_NAME = "debug.jsonl"

# Keys RichHandler already shows in its own columns.
_CONSOLE_DROPPED_KEYS = ("timestamp", "level", "logger")

_configured = False
_file_handler: logging.FileHandler | None = None
_logs_dir: Path | None = None


def _drop_console_keys(_logger: WrappedLogger, _name: str, event_dict: EventDict) -> EventDict:
    for key in _CONSOLE_DROPPED_KEYS:
        event_dict.pop(key, None)
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _console_handler(verbosity: int) -> logging.Handler:
    levels = {0: logging.WARNING, 1: logging.INFO}
    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbosity >= 2,
        show_time=verbosity >= 1,
        show_path=verbosity >= 2,
        markup=False,
        level=levels.get(verbosity, logging.DEBUG),
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_shared_processors(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _drop_console_keys,
                structlog.dev.ConsoleRenderer(colors=False),
            ],
        )
    )
    return handler


def _jsonl_handler(log_dir: Path) -> logging.FileHandler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / DEBUG_LOG_NAME, mode="a", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_shared_processors(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.EventRenamer("message"),
                structlog.processors.JSONRenderer(default=str),
            ],
        )
    )
    return handler


def configure_logging(
    verbosity: int = 0,
    log_to_file: bool = False,
    log_dir: Path | None = None,
) -> None:
    """Install the console sink and, optionally, the JSONL sink.

    Safe to call again: the previous file handler is closed and replaced.

    Args:
        verbosity: Console level. 0=WARNING (default), 1=INFO, 2+=DEBUG.
        log_to_file: Also append every event, at DEBUG, to ``log_dir/debug.jsonl``.
        log_dir: Directory for the JSONL file. Required if log_to_file=True.

    Raises:
        ValueError: If log_to_file=True but log_dir is not provided.
    """
    global _configured, _file_handler, _logs_dir

    if log_to_file and log_dir is None:
        raise ValueError("log_dir is required when log_to_file=True")

    close_file_logging()

    handlers = [_console_handler(verbosity)]
    _logs_dir = log_dir if log_to_file else None
    if _logs_dir is not None:
        _file_handler = _jsonl_handler(_logs_dir)
        handlers.append(_file_handler)

    # The root stays open whenever some sink wants more than warnings;
    # each handler applies its own level.
    root_level = logging.DEBUG if (verbosity > 0 or log_to_file) else logging.WARNING
    logging.basicConfig(level=root_level, handlers=handlers, force=True)

    # Loggers are not cached: modules hold loggers created at import time,
    # and a later call (dg --log) must still reach them.
    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        cache_logger_on_first_use=False,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Return a structured logger, installing the quiet defaults on first use."""
    if not _configured:
        configure_logging()

    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger


def graph_log_context(graph_id: str, **extra: Any) -> AbstractContextManager[None]:
    """Bind ``graph_id`` (and any *extra* keys) to events logged inside the block.

    The binding lives in a context variable, so concurrent threads working on
    different stores do not see each other's ids.
    """
    return structlog.contextvars.bound_contextvars(graph_id=graph_id, **extra)


def get_logs_dir() -> Path | None:
    """Directory receiving the JSONL log, or None if file logging is off."""
    return _logs_dir


def close_file_logging() -> None:
    """Close the JSONL handler, if one is open."""
    global _file_handler
    if _file_handler is not None:
        _file_handler.close()
        _file_handler = None
