"""Logging setup: JSON lines to error.log / combined.log, plain console in dev.

Modules log through logging.getLogger(__name__) and attach identifiers
with extra={...}; structlog's ProcessorFormatter lifts those extras into
the rendered JSON.
"""

from __future__ import annotations

import logging
from pathlib import Path

import structlog

from src.config import Settings


def json_formatter() -> structlog.stdlib.ProcessorFormatter:
    """One JSON object per line: timestamp, level, logger, message, extras."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.ExtraAdder(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(default=str),
        ],
    )


def configure_logging(settings: Settings) -> None:
    """Install root handlers. Safe to call more than once."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)

    formatter = json_formatter()

    error_handler = logging.FileHandler(log_dir / "error.log", encoding="utf-8")
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)
    root.addHandler(error_handler)

    combined_handler = logging.FileHandler(log_dir / "combined.log", encoding="utf-8")
    combined_handler.setLevel(level)
    combined_handler.setFormatter(formatter)
    root.addHandler(combined_handler)

    if not settings.is_production:
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(logging.Formatter("%(levelname)s: %(name)s %(message)s"))
        root.addHandler(console)
