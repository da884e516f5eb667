"""Structured failure records and logging setup."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

import discord
import structlog

logger = structlog.get_logger(__name__)


class Severity(str, enum.Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def level(self) -> int:
        return _LEVELS[self]


_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


@dataclass(frozen=True, slots=True)
class LogRecord:
    """One diagnostic record per failure; emitted once and then discarded."""

    severity: Severity
    message: str
    fields: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))


def emit(record: LogRecord, log: Optional[Any] = None) -> None:
    """Write ``record`` to the structured log."""
    log = log or logger
    log.log(record.severity.level, record.message, severity=record.severity.value, **record.fields)


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
    )
    discord.utils.setup_logging(level=numeric_level, root=False)
