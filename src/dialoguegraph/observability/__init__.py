"""Observability helpers: structured logging."""

from dialoguegraph.observability.logging import (
    close_file_logging,
    configure_logging,
    get_logger,
    get_logs_dir,
    graph_log_context,
)

__all__ = [
    "close_file_logging",
    "configure_logging",
    "get_logger",
    "get_logs_dir",
    "graph_log_context",
]
