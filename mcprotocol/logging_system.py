# mcprotocol/logging_system.py
"""
Structured logging for the MC protocol client.

Provides:
- Optional console logging and rotating JSON file logging; with the
  console off (the default) records propagate to the application
- Event classification (severity and category)
- In-memory trail of recent communication events
- Thread-safe logger factory

The client logs connection lifecycle events (dial, probe failure,
teardown) and response check failures. Errors are always raised to the
caller as well; logging never replaces them.
"""

import json
import logging
import logging.handlers
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

__all__ = [
    "EventSeverity",
    "EventCategory",
    "LogEntry",
    "JSONFormatter",
    "PLCLogger",
    "configure_logging",
    "get_logger",
]

# ----------------------------------------------------------------
# Event Classification
# ----------------------------------------------------------------


class EventSeverity(Enum):
    """
    Event severity levels.

    Lower number = higher severity
    """

    CRITICAL = 1
    ERROR = 2
    WARNING = 3
    NOTICE = 4
    INFO = 5
    DEBUG = 6


class EventCategory(Enum):
    """Event categories."""

    COMMUNICATION = "communication"  # Dial, teardown, socket I/O
    DIAGNOSTIC = "diagnostic"  # Health checks, response checks
    SYSTEM = "system"


LOGGING_TO_SEVERITY = {
    logging.CRITICAL: EventSeverity.CRITICAL,
    logging.ERROR: EventSeverity.ERROR,
    logging.WARNING: EventSeverity.WARNING,
    logging.INFO: EventSeverity.INFO,
    logging.DEBUG: EventSeverity.DEBUG,
}

SEVERITY_TO_LOGGING = {
    EventSeverity.CRITICAL: logging.CRITICAL,
    EventSeverity.ERROR: logging.ERROR,
    EventSeverity.WARNING: logging.WARNING,
    EventSeverity.NOTICE: logging.INFO,
    EventSeverity.INFO: logging.INFO,
    EventSeverity.DEBUG: logging.DEBUG,
}


# ----------------------------------------------------------------
# Structured Log Entry
# ----------------------------------------------------------------


@dataclass
class LogEntry:
    """Structured log entry for a client event."""

    wall_time: float
    severity: EventSeverity
    category: EventCategory
    message: str

    device: str = ""  # PLC endpoint, "host:port"
    component: str = ""

    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialisation."""
        entry_dict = {
            "wall_time": self.wall_time,
            "severity": self.severity.name,
            "category": self.category.value,
            "message": self.message,
        }

        if self.device:
            entry_dict["device"] = self.device
        if self.component:
            entry_dict["component"] = self.component
        if self.data:
            entry_dict["data"] = json.dumps(self.data, default=str)

        return entry_dict

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())

    def to_human_readable(self) -> str:
        """Convert to human-readable format."""
        severity_str = f"[{self.severity.name:8s}]"
        device_str = f"{self.device}:" if self.device else ""
        component_str = f"{self.component}:" if self.component else ""

        return f"{severity_str} {device_str}{component_str} {self.message}"


# ----------------------------------------------------------------
# JSON Formatter
# ----------------------------------------------------------------


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines."""

    def __init__(self, device: str = ""):
        super().__init__()
        self.device = device

    def format(self, record: logging.LogRecord) -> str:
        severity = LOGGING_TO_SEVERITY.get(record.levelno, EventSeverity.INFO)

        log_entry = LogEntry(
            wall_time=record.created,
            severity=severity,
            category=EventCategory.SYSTEM,
            message=record.getMessage(),
            device=self.device,
            component=record.name,
        )

        if record.exc_info:
            log_entry.data["exception"] = self.formatException(record.exc_info)

        return log_entry.to_json()


# ----------------------------------------------------------------
# PLC Logger
# ----------------------------------------------------------------


class PLCLogger:
    """
    Logger for one PLC endpoint.

    Wraps Python's logging with:
    - Console and rotating JSON file output
    - Event classification
    - A bounded trail of recent events
    """

    def __init__(
        self,
        name: str,
        device: str = "",
        log_dir: Path | None = None,
        enable_json: bool = True,
        enable_console: bool = False,
        level: int = logging.INFO,
        max_trail_entries: int = 1000,
    ):
        """
        Initialise PLC logger.

        Args:
            name: Logger name (typically module name)
            device: PLC endpoint for context
            log_dir: Directory for log files (None = no file logging)
            enable_json: Enable JSON formatted logs (requires log_dir)
            enable_console: Enable console output (otherwise records
                propagate to the application's handlers)
            level: Minimum level for all handlers
            max_trail_entries: Maximum events kept in the trail
        """
        self.name = name
        self.device = device
        self.log_dir = log_dir

        logger_name = f"{name}.{device}" if device else name
        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(level)
        self.logger.propagate = not enable_console

        self.logger.handlers.clear()

        if enable_console:
            self._add_console_handler(level)

        if enable_json and log_dir:
            self._add_json_handler(level)

        self.event_trail: list[LogEntry] = []
        self._trail_lock = threading.Lock()
        self._max_trail_entries = max_trail_entries

    def _add_console_handler(self, level: int) -> None:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(
            logging.Formatter("[%(levelname)8s] %(name)s: %(message)s")
        )
        self.logger.addHandler(handler)

    def _add_json_handler(self, level: int) -> None:
        """Add JSON file handler with rotation."""
        if not self.log_dir:
            return

        self.log_dir.mkdir(parents=True, exist_ok=True)
        safe_device = self.device.replace(":", "_") if self.device else "client"
        log_file = self.log_dir / f"{safe_device}.json.log"

        # 10MB max, 5 backups
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
        )
        handler.setLevel(level)
        handler.setFormatter(JSONFormatter(device=self.device))
        self.logger.addHandler(handler)

    # ----------------------------------------------------------------
    # Standard logging methods
    # ----------------------------------------------------------------

    def debug(self, message: str, **kwargs) -> None:
        self.logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self.logger.info(message, **kwargs)

    # ----------------------------------------------------------------
    # Structured events
    # ----------------------------------------------------------------

    def log_event(
        self,
        severity: EventSeverity,
        category: EventCategory,
        message: str,
        **kwargs,
    ) -> LogEntry:
        """
        Log a structured event and append it to the trail.

        Args:
            severity: Event severity level
            category: Event category
            message: Event message
            **kwargs: Additional context (component, data)

        Returns:
            LogEntry that was created
        """
        device = kwargs.pop("device", self.device)

        entry = LogEntry(
            wall_time=time.time(),
            severity=severity,
            category=category,
            message=message,
            device=device,
            **kwargs,
        )

        self.logger.log(
            SEVERITY_TO_LOGGING.get(severity, logging.INFO),
            entry.to_human_readable(),
        )

        with self._trail_lock:
            self.event_trail.append(entry)
            if len(self.event_trail) > self._max_trail_entries:
                self.event_trail = self.event_trail[-self._max_trail_entries :]

        return entry

    def get_event_trail(
        self,
        limit: int = 100,
        category: EventCategory | None = None,
    ) -> list[LogEntry]:
        """Most recent events, oldest first."""
        with self._trail_lock:
            entries = self.event_trail
            if category:
                entries = [e for e in entries if e.category == category]
            return entries[-limit:]

    def clear_event_trail(self) -> int:
        """Clear the event trail and return the number of entries removed."""
        with self._trail_lock:
            count = len(self.event_trail)
            self.event_trail.clear()
            return count


# ----------------------------------------------------------------
# Global logger factory
# ----------------------------------------------------------------

_loggers: dict[str, PLCLogger] = {}
_loggers_lock = threading.Lock()
_default_log_dir: Path | None = None
_default_level: int | None = None
_default_console: bool | None = None


def configure_logging(
    log_dir: Path | str | None = None,
    level: int | str | None = None,
    console: bool | None = None,
) -> None:
    """
    Configure global logging settings.

    Applies to loggers created after this call.

    Args:
        log_dir: Directory for JSON log files
        level: Logging level (number or name such as "DEBUG")
        console: Enable or disable console output
    """
    global _default_log_dir, _default_level, _default_console

    if log_dir:
        _default_log_dir = Path(log_dir)
        _default_log_dir.mkdir(parents=True, exist_ok=True)

    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown logging level: {level}")
        level = resolved
    if level is not None:
        _default_level = level

    if console is not None:
        _default_console = console


def get_logger(name: str, device: str = "", **kwargs) -> PLCLogger:
    """
    Get or create a PLC logger.

    Thread-safe logger factory.

    Args:
        name: Logger name (typically __name__)
        device: PLC endpoint for context
        **kwargs: Additional PLCLogger arguments

    Returns:
        PLCLogger instance
    """
    logger_key = f"{name}:{device}"

    with _loggers_lock:
        if logger_key not in _loggers:
            if "log_dir" not in kwargs and _default_log_dir:
                kwargs["log_dir"] = _default_log_dir
            if "level" not in kwargs and _default_level is not None:
                kwargs["level"] = _default_level
            if "enable_console" not in kwargs and _default_console is not None:
                kwargs["enable_console"] = _default_console

            _loggers[logger_key] = PLCLogger(name, device, **kwargs)

        return _loggers[logger_key]
