# src/pipecanvas/core/logging.py
"""Structured logging for pipecanvas.

The editor, persistence layer and engines log through structlog. Records
from third-party libraries (Dynaconf while loading settings) go through the
same ProcessorFormatter, so one run produces one consistent stream.

Logs go to stderr: stdout carries CLI reports and share tokens.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

# Silenced to WARNING even under --verbose
_NOISY_LOGGERS: tuple[str, ...] = ("dynaconf", "networkx")


def _drop_formatter_fields(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    # ProcessorFormatter always sets both; a KeyError means the wiring broke
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def _renderer(json_output: bool) -> list[Any]:
    if json_output:
        return [_drop_formatter_fields, structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [_drop_formatter_fields, structlog.dev.ConsoleRenderer(colors=False)]


def configure_logging(*, json_output: bool = False, level: str = "INFO") -> None:
    """Route structlog and stdlib records to one stderr handler.

    Args:
        json_output: JSON lines when True, console text otherwise.
        level: Root level name (DEBUG, INFO, WARNING, ERROR).
    """
    log_level = logging.getLevelNamesMapping()[level.upper()]

    shared: list[Any] = [
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[*shared, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # CLI invocations and tests reconfigure; cached loggers would go stale
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ProcessorFormatter(processors=_renderer(json_output), foreign_pre_chain=shared))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Bound logger for a module (pass ``__name__``)."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
