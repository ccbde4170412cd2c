"""
Structured logging configuration using structlog.

Every event, whether it comes from structlog or from a stdlib logger such as
aiosqlite, is rendered by one handler on the root logger. That handler writes
to stderr unless told otherwise, which keeps stdout free for command output
like the JSON printed by ``manage.py reconcile``.
"""

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.types import Processor

from stockledger.config.settings import get_settings

HANDLER_NAME = "stockledger"


def add_app_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add application context to log events."""
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["version"] = settings.app_version
    event_dict["environment"] = settings.environment
    return event_dict


def _renderer(stream: TextIO) -> list[Processor]:
    if get_settings().environment == "development":
        return [structlog.dev.ConsoleRenderer(colors=stream.isatty())]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


def _drop_handler(root: logging.Logger) -> None:
    for handler in list(root.handlers):
        if handler.get_name() == HANDLER_NAME:
            root.removeHandler(handler)
            handler.close()


def configure_logging(stream: TextIO | None = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        stream: where log lines go; stderr when None. Calling again replaces
            the previous handler instead of adding a second one.
    """
    settings = get_settings()
    stream = stream or sys.stderr

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_app_context,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_renderer(stream),
            ],
        )
    )

    root = logging.getLogger()
    _drop_handler(root)
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.log_level))

    # aiosqlite logs every statement at DEBUG
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def reset_logging() -> None:
    """Remove the handler installed by configure_logging (for testing)."""
    _drop_handler(logging.getLogger())
    structlog.reset_defaults()


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
