"""Logging configuration.

stdout carries the MCP stdio transport and the CLI's JSON output, so every
log line goes to stderr.
"""

from __future__ import annotations

import logging
import sys

import structlog


class GitPopenFilter(logging.Filter):
    """Drop GitPython's Popen debug chatter."""

    def filter(self, record: logging.LogRecord) -> bool:
        return "Popen(['git'" not in record.getMessage()


def configure_logging(level: str = "INFO") -> None:
    """Route stdlib and structlog output to stderr at the given level."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.handlers = []

    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(GitPopenFilter())
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            # No colors: ANSI codes would end up in MCP host logs.
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
