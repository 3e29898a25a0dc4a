"""Structured logging helpers shared by the CLI and the pull engine."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TextIO

if TYPE_CHECKING:
    from collections.abc import Mapping

_FIELDS_ATTRIBUTE = "structured_fields"


class _TextFormatter(logging.Formatter):
    """Render records as ``LEVEL message key=value`` lines."""

    def format(self, record: logging.LogRecord) -> str:
        fields: Mapping[str, Any] = getattr(record, _FIELDS_ATTRIBUTE, {})
        parts = [record.levelname, record.getMessage()]
        parts.extend(f"{key}={_render_value(value)}" for key, value in fields.items())
        return " ".join(parts)


class _JsonFormatter(logging.Formatter):
    """Render records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        fields: Mapping[str, Any] = getattr(record, _FIELDS_ATTRIBUTE, {})
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in fields.items():
            payload.setdefault(key, value)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _render_value(value: object) -> str:
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False) if any(char.isspace() for char in value) else value
    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value)
    return str(value)


class StructuredLogger:
    """Leveled logger accepting keyword fields alongside the message.

    Each instance owns a private :class:`logging.Logger` that is not registered
    with the global logging manager, so loggers created for tests or for separate
    CLI invocations never share handlers.
    """

    def __init__(
        self,
        *,
        name: str,
        json_mode: bool = False,
        stream: TextIO | None = None,
        level: int = logging.INFO,
    ) -> None:
        """Create a logger writing to ``stream`` (``sys.stderr`` by default)."""
        self.name = name
        self.json_mode = json_mode
        self._logger = logging.Logger(name)
        # Filtering happens on the handler; unregistered loggers keep a stale
        # isEnabledFor cache when their own level changes.
        self._handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        self._handler.setFormatter(_JsonFormatter() if json_mode else _TextFormatter())
        self._handler.setLevel(level)
        self._logger.addHandler(self._handler)
        self._logger.propagate = False

    @property
    def level(self) -> int:
        """Return the minimum level that reaches the stream."""
        return self._handler.level

    def set_level(self, level: int) -> None:
        """Change the minimum level that reaches the stream."""
        self._handler.setLevel(level)

    def debug(self, message: str, **fields: Any) -> None:
        """Log ``message`` at DEBUG level."""
        self._log(logging.DEBUG, message, fields)

    def info(self, message: str, **fields: Any) -> None:
        """Log ``message`` at INFO level."""
        self._log(logging.INFO, message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        """Log ``message`` at WARNING level."""
        self._log(logging.WARNING, message, fields)

    def error(self, message: str, **fields: Any) -> None:
        """Log ``message`` at ERROR level."""
        self._log(logging.ERROR, message, fields)

    def _log(self, level: int, message: str, fields: dict[str, Any]) -> None:
        if level < self._handler.level:
            return
        self._logger.log(level, message, extra={_FIELDS_ATTRIBUTE: fields})


__all__ = ["StructuredLogger"]
