"""
Structured logging for ScrollGuard, structlog layered over stdlib logging.

Library modules log through ``logging.getLogger(__name__)``; the host-facing
pipeline uses ``get_logger`` and binds the live session (app id, session
start) into the context so every line emitted while a session is open
carries it.

Environment:
    SCROLLGUARD_LOG_LEVEL   DEBUG / INFO / WARNING (default INFO)
    SCROLLGUARD_LOG_FORMAT  "json" for JSON lines, anything else for console

Usage:
    from scrollguard.logging_config import setup_logging, get_logger
    setup_logging()
    logger = get_logger(__name__)
    logger.info("session_started", app_id="com.instagram.android")
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import structlog

LEVEL_ENV = "SCROLLGUARD_LOG_LEVEL"
FORMAT_ENV = "SCROLLGUARD_LOG_FORMAT"


def _processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging(
    level: str | None = None,
    json_output: bool | None = None,
    log_file: str | Path | None = None,
) -> None:
    """Configure structlog and the root stdlib logger.

    Args:
        level: Log level name; falls back to SCROLLGUARD_LOG_LEVEL, then INFO
        json_output: Render JSON lines; falls back to SCROLLGUARD_LOG_FORMAT
        log_file: Optional file that receives a JSON copy of every record
    """
    if level is None:
        level = os.environ.get(LEVEL_ENV, "INFO")
    if json_output is None:
        json_output = os.environ.get(FORMAT_ENV, "").lower() == "json"

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=[*_processors(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    console_renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )

    # stderr keeps CLI JSON on stdout parseable
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(_formatter(console_renderer))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(stream_handler)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
        root.addHandler(file_handler)

    root.setLevel(numeric_level)


def _formatter(renderer: structlog.types.Processor) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_session_context(app_id: str, session_start: int) -> None:
    """Attach the live session to every log line until it is cleared."""
    structlog.contextvars.bind_contextvars(app_id=app_id, session_start=session_start)


def clear_session_context() -> None:
    structlog.contextvars.unbind_contextvars("app_id", "session_start")


__all__ = ["bind_session_context", "clear_session_context", "get_logger", "setup_logging"]
