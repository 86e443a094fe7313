"""Level-masked, per-domain logging with optional deferred output."""

from __future__ import annotations

import datetime as _dt
import enum
import sys
import threading
from dataclasses import dataclass
from typing import Callable, Optional, TextIO

Handler = Callable[[Optional[str], "LogLevel", str], None]


class LogLevel(enum.IntFlag):
    """Log levels; each is a single bit so that they can be combined in masks."""

    DEBUG = 1
    TRACE = 1 << 1
    MESSAGE = 1 << 2
    WARNING = 1 << 3
    ERROR = 1 << 4
    FATAL = 1 << 5
    END = 1 << 6


class FatalLogError(RuntimeError):
    """Raised after a message of level FATAL has been logged."""


_LEVEL_NAMES = {
    LogLevel.DEBUG: "debug",
    LogLevel.MESSAGE: "message",
    LogLevel.WARNING: "warning",
    LogLevel.ERROR: "error",
    LogLevel.FATAL: "fatal",
}

_DEFAULT_MASK = LogLevel.WARNING | LogLevel.ERROR | LogLevel.FATAL


def format_record(level: LogLevel, message: str, when: _dt.datetime) -> str:
    """Format one log line (without line terminator) the way the default handler writes it."""
    name = _LEVEL_NAMES.get(level, "badlevel")
    return (
        f"{when.year}-{when.month:02d}-{when.day:02d} "
        f"{when.hour:02d}:{when.minute:02d}:{when.second:02d}:"
        f"{when.microsecond // 1000:03d} rtpkit-{name}-{message}"
    )


@dataclass
class _StoredRecord:
    domain: Optional[str]
    level: LogLevel
    message: str


def _render(fmt: str, args: tuple) -> str:
    return fmt % args if args else fmt


class Logger:
    """Dispatches log messages to a handler, filtered by per-domain level masks."""

    def __init__(self) -> None:
        self._handler: Optional[Handler] = self.write_default
        self._mask: int = int(_DEFAULT_MASK)
        self._file: Optional[TextIO] = None
        self._thread_id: int = 0
        self._stored: list[_StoredRecord] = []
        self._stored_lock = threading.Lock()
        self._domains: dict[str, int] = {}
        self._domains_lock = threading.Lock()

    def set_log_file(self, file: Optional[TextIO]) -> None:
        """Set the stream used by the default handler (stderr when None)."""
        self._file = file

    def set_handler(self, handler: Optional[Handler]) -> None:
        """Install a handler called as handler(domain, level, message); None disables output."""
        self._handler = handler

    def get_handler(self) -> Optional[Handler]:
        return self._handler

    def _domain_mask_rw(self, domain: str) -> None:
        if domain in self._domains:
            return
        with self._domains_lock:
            self._domains.setdefault(domain, self._mask)

    def set_level_mask(self, domain: Optional[str], mask: int) -> None:
        """Set the mask of a domain, or the default mask when domain is None."""
        if domain is None:
            self._mask = int(mask)
        else:
            self._domain_mask_rw(domain)
            self._domains[domain] = int(mask)

    def set_level(self, domain: Optional[str], level: LogLevel) -> None:
        """Enable every level greater than or equal to the given one."""
        mask = LogLevel.FATAL
        for candidate in (
            LogLevel.ERROR,
            LogLevel.WARNING,
            LogLevel.MESSAGE,
            LogLevel.TRACE,
            LogLevel.DEBUG,
        ):
            if level <= candidate:
                mask |= candidate
        self.set_level_mask(domain, mask)

    def get_level_mask(self, domain: Optional[str]) -> int:
        if domain is None or domain not in self._domains:
            return self._mask
        return self._domains[domain]

    def level_enabled(self, domain: Optional[str], level: LogLevel) -> bool:
        return bool(self.get_level_mask(domain) & level)

    def set_thread_id(self, thread_id: int) -> None:
        """Route output through one thread; 0 restores immediate output after flushing."""
        if thread_id == 0:
            self.flush()
        self._thread_id = thread_id

    def log(self, domain: Optional[str], level: LogLevel, fmt: str, *args) -> None:
        """Log a printf-style message; a FATAL message raises FatalLogError afterwards."""
        handler = self._handler
        if handler is not None and self.level_enabled(domain, level):
            text = _render(fmt, args)
            if self._thread_id == 0:
                handler(domain, level, text)
            elif self._thread_id == threading.get_ident():
                self.flush()
                handler(domain, level, text)
            else:
                with self._stored_lock:
                    self._stored.append(_StoredRecord(domain, level, text))
        if level == LogLevel.FATAL:
            self.flush()
            raise FatalLogError(_render(fmt, args))

    def flush(self) -> None:
        """Deliver messages that were deferred for the output thread."""
        with self._stored_lock:
            records, self._stored = self._stored, []
        handler = self._handler
        if handler is None:
            return
        for record in records:
            handler(record.domain, record.level, record.message)

    def reset_domains(self) -> None:
        """Forget every per-domain mask."""
        with self._domains_lock:
            self._domains.clear()

    def write_default(self, domain: Optional[str], level: LogLevel, message: str) -> None:
        """Default handler: write a timestamped line to the log file."""
        if self._file is None:
            self._file = sys.stderr
        self._file.write(format_record(level, message, _dt.datetime.now()) + "\n")
        self._file.flush()


_default_logger = Logger()


def get_logger() -> Logger:
    """Return the process-wide logger."""
    return _default_logger


def log(level: LogLevel, fmt: str, *args) -> None:
    _default_logger.log(None, level, fmt, *args)


def debug(fmt: str, *args) -> None:
    _default_logger.log(None, LogLevel.DEBUG, fmt, *args)


def message(fmt: str, *args) -> None:
    _default_logger.log(None, LogLevel.MESSAGE, fmt, *args)


def warning(fmt: str, *args) -> None:
    _default_logger.log(None, LogLevel.WARNING, fmt, *args)


def error(fmt: str, *args) -> None:
    _default_logger.log(None, LogLevel.ERROR, fmt, *args)


def fatal(fmt: str, *args) -> None:
    _default_logger.log(None, LogLevel.FATAL, fmt, *args)