"""Logging configuration using structlog.

Logs go to stderr so stdout only carries rendered results.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

_LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class _LazyStderrFactory:
    """Look up sys.stderr when each logger is created.

    CliRunner swaps stderr between invocations, so a handle captured at
    configure() time goes stale.
    """

    def __call__(self, *args: Any, **kwargs: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file=sys.stderr)


def setup_logging(verbose: bool = False, json_logs: bool = False) -> None:
    """Configure structlog for MiniBank Console.

    Args:
        verbose: Log at DEBUG instead of WARNING, so request traces show up.
        json_logs: Emit one JSON object per line instead of console text.
    """
    log_level = "debug" if verbose else "warning"
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_LOG_LEVELS[log_level]),
        context_class=dict,
        logger_factory=_LazyStderrFactory(),
        cache_logger_on_first_use=False,
    )


def bind_screen(screen: str) -> None:
    """Tag every log line emitted from now on with the active screen."""
    structlog.contextvars.bind_contextvars(screen=screen)

