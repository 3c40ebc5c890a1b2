"""
Logging configuration for the e-services portal.
Provides structured logging with different levels and formats.

File handlers are driven through a QueueHandler/QueueListener pair so log
writes never block the event loop; console output stays direct.
"""

import atexit
import logging
import logging.handlers
import queue
import sys
from pathlib import Path
from typing import Optional

from pydantic import BaseModel


# Global queue listener for cleanup
_queue_listener: Optional[logging.handlers.QueueListener] = None


class LogConfig(BaseModel):
    """Logging configuration settings."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    enable_file_logging: bool = True
    log_dir: str = "logs"
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    enable_console: bool = True


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output."""

    grey = "\x1b[38;21m"
    yellow = "\x1b[33;21m"
    red = "\x1b[31;21m"
    bold_red = "\x1b[31;1m"
    blue = "\x1b[34;21m"
    reset = "\x1b[0m"

    COLORS = {
        logging.DEBUG: grey,
        logging.INFO: blue,
        logging.WARNING: yellow,
        logging.ERROR: red,
        logging.CRITICAL: bold_red,
    }

    def format(self, record):
        # Work on a copy so queued file handlers see the plain levelname
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelno, self.grey)
        record.levelname = f"{color}{record.levelname}{self.reset}"
        formatted = super().format(record)
        return f"{formatted}{self.reset}"


def _rotating_handler(config: LogConfig, filename: str, formatter: logging.Formatter):
    handler = logging.handlers.RotatingFileHandler(
        Path(config.log_dir) / filename,
        maxBytes=config.max_file_size,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(getattr(logging, config.level.upper()))
    handler.setFormatter(formatter)
    return handler


class _PrefixFilter(logging.Filter):
    """Pass only records whose logger name starts with one of the prefixes."""

    def __init__(self, *prefixes: str):
        super().__init__()
        self.prefixes = prefixes

    def filter(self, record: logging.LogRecord) -> bool:
        return record.name.startswith(self.prefixes)


def setup_logging(config: Optional[LogConfig] = None) -> None:
    """Setup application logging with configuration.

    - app.log receives everything
    - sessions.log receives session store and access guard records
    - remote.log receives data source records
    """
    global _queue_listener

    if config is None:
        config = LogConfig()

    if _queue_listener:
        _queue_listener.stop()
        _queue_listener = None

    if config.enable_file_logging:
        Path(config.log_dir).mkdir(exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level.upper()))
    root_logger.handlers.clear()

    if config.enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, config.level.upper()))
        console_handler.setFormatter(
            ColoredFormatter(
                fmt="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
                datefmt=config.date_format,
            )
        )
        root_logger.addHandler(console_handler)

    file_handlers = []

    if config.enable_file_logging:
        file_formatter = logging.Formatter(
            fmt="%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt=config.date_format,
        )

        file_handlers.append(_rotating_handler(config, "app.log", file_formatter))

        session_handler = _rotating_handler(config, "sessions.log", file_formatter)
        session_handler.addFilter(_PrefixFilter("services.session_store", "core.guards", "session."))
        file_handlers.append(session_handler)

        remote_handler = _rotating_handler(config, "remote.log", file_formatter)
        remote_handler.addFilter(_PrefixFilter("repositories."))
        file_handlers.append(remote_handler)

    if file_handlers:
        log_queue = queue.Queue(-1)
        root_logger.addHandler(logging.handlers.QueueHandler(log_queue))

        # respect_handler_level=True ensures only relevant logs are processed
        _queue_listener = logging.handlers.QueueListener(
            log_queue,
            *file_handlers,
            respect_handler_level=True,
        )
        _queue_listener.start()

        atexit.register(stop_queue_listener)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def stop_queue_listener() -> None:
    """Stop the queue listener gracefully.

    Called automatically on exit via atexit.
    Can also be called manually during shutdown.
    """
    global _queue_listener

    if _queue_listener:
        _queue_listener.stop()
        _queue_listener = None


class SessionLogger:
    """Structured logger for portal session lifecycle."""

    def __init__(self, name: str = "portal"):
        self.logger = logging.getLogger(f"session.{name}")

    def session_created(self, portal_id: str, mode: str) -> None:
        """Log when a portal session is created."""
        self.logger.info(f"Portal session created | Portal ID: {portal_id} | Data source: {mode}")

    def session_expired(self, portal_id: str) -> None:
        """Log when an idle portal session is dropped."""
        self.logger.info(f"Portal session expired | Portal ID: {portal_id}")

    def identity_changed(self, portal_id: str, user_id: Optional[str], role: Optional[str]) -> None:
        """Log identity changes on a portal session."""
        self.logger.info(
            f"Identity changed | Portal ID: {portal_id} | User ID: {user_id or '-'} | "
            f"Role: {role or '-'}"
        )

    def error_occurred(self, operation: str, portal_id: Optional[str] = None, error: str = "") -> None:
        """Log errors with context."""
        context_str = f"Portal ID: {portal_id}" if portal_id else "No context"
        self.logger.error(f"Session error | Operation: {operation} | {context_str} | Error: {error}")
