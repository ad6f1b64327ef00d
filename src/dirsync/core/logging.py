"""
DirSync logging.

Console output goes through structlog. Sync activity is additionally written
as plain text lines to a general log, an error log and a per-session log.
"""

from __future__ import annotations

import logging
import sys
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Callable

import structlog
from structlog.types import EventDict, WrappedLogger

if TYPE_CHECKING:
    from dirsync.core.config import LogLayout, LoggingConfig


_configured = False


def add_timestamp(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO format timestamp to log events."""
    event_dict["timestamp"] = datetime.now().isoformat()
    return event_dict


def add_log_level(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add log level to event dict."""
    event_dict["level"] = method_name.upper()
    return event_dict


def setup_logging(config: LoggingConfig) -> None:
    """Configure structured console logging for DirSync."""
    global _configured

    if _configured:
        return

    handlers: list[logging.Handler] = []

    if config.console_enabled:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, config.level))
        handlers.append(console_handler)
    else:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=logging.DEBUG,
        handlers=handlers,
        format="%(message)s",
    )

    shared_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_logger_name,
        add_timestamp,
        add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if config.json_format:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name or "dirsync")


class SyncLogger(ABC):
    """
    Sink for sync activity.

    Has a general channel, an error channel and a session channel that is
    opened per sync session and may be discarded when the session did nothing.
    """

    @abstractmethod
    def message(self, text: str, session: bool = False) -> None:
        """Log a general line, or a session line when ``session`` is set."""

    @abstractmethod
    def error(self, text: str) -> None:
        """Log a line to the error channel."""

    @abstractmethod
    def begin_session(self, session_id: str) -> None:
        """Open the session channel for ``session_id``."""

    @abstractmethod
    def discard_session(self, session_id: str) -> None:
        """Drop everything written to the session channel of ``session_id``."""

    @abstractmethod
    def session_exists(self, session_id: str) -> bool:
        """Check whether a session log for ``session_id`` is already kept."""


class FileSyncLogger(SyncLogger):
    """Writes timestamped plain text lines to the DirSync log files."""

    def __init__(
        self,
        layout: LogLayout,
        logger: structlog.stdlib.BoundLogger | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.layout = layout
        self.logger = logger or get_logger("dirsync.sync")
        self.clock = clock
        self.session_id: str | None = None

        layout.ensure()
        layout.general_log.touch(exist_ok=True)
        layout.error_log.touch(exist_ok=True)

    def message(self, text: str, session: bool = False) -> None:
        if session and self.session_id is not None:
            self.logger.info(text, session_id=self.session_id)
            self._write(self.layout.session_log(self.session_id), text)
        else:
            self.logger.info(text)
            self._write(self.layout.general_log, text)

    def error(self, text: str) -> None:
        self.logger.error(text)
        self._write(self.layout.error_log, text)

    def begin_session(self, session_id: str) -> None:
        self.session_id = session_id
        self.layout.session_log(session_id).touch(exist_ok=True)

    def discard_session(self, session_id: str) -> None:
        try:
            self.layout.session_log(session_id).unlink(missing_ok=True)
        except OSError as e:
            self.error(f"> Failed to delete session log {session_id}.")
            self.error(f"Error: {e!r}")
        if self.session_id == session_id:
            self.session_id = None

    def session_exists(self, session_id: str) -> bool:
        return self.layout.session_log(session_id).exists()

    def _write(self, path: Path, text: str) -> None:
        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(f"{self.clock().strftime('%Y-%m-%d %H:%M:%S')}: {text}\n")
        except OSError as e:
            self.logger.warning("Failed to log message to file", path=str(path), error=str(e))


class MemorySyncLogger(SyncLogger):
    """Keeps sync activity in memory."""

    def __init__(self) -> None:
        self.general: list[str] = []
        self.errors: list[str] = []
        self.sessions: dict[str, list[str]] = {}
        self.discarded: list[str] = []
        self.session_id: str | None = None

    def message(self, text: str, session: bool = False) -> None:
        if session and self.session_id is not None:
            self.sessions[self.session_id].append(text)
        else:
            self.general.append(text)

    def error(self, text: str) -> None:
        self.errors.append(text)

    def begin_session(self, session_id: str) -> None:
        self.session_id = session_id
        self.sessions.setdefault(session_id, [])

    def discard_session(self, session_id: str) -> None:
        self.sessions.pop(session_id, None)
        self.discarded.append(session_id)
        if self.session_id == session_id:
            self.session_id = None

    def session_exists(self, session_id: str) -> bool:
        return session_id in self.sessions

    @property
    def session_lines(self) -> list[str]:
        if self.session_id is None:
            return []
        return list(self.sessions.get(self.session_id, []))
