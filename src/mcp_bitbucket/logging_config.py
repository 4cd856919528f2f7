"""Contextual logging configuration for MCP Bitbucket."""

import logging
import os
import sys
import threading
import time
import types
import uuid
from collections.abc import Mapping
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, cast

DEFAULT_LOGGER_NAME = "mcp-bitbucket"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] [%(context)s] %(message)s"
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_DIRECTORY = "logs"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT = 5


class ContextualLogger(logging.Logger):
    """Logger that renders per-thread context (operation, trace id) into each record."""

    def __init__(self, name: str, level: int = 0) -> None:
        super().__init__(name, level)
        self._context_data = threading.local()

    def _get_context_str(self) -> str:
        context_data = getattr(self._context_data, "data", {})
        if not context_data:
            return "no-context"
        return ",".join(f"{k}={v}" for k, v in context_data.items())

    def _log(
        self,
        level: int,
        msg: object,
        args: tuple[object, ...] | Mapping[str, object],
        exc_info: Any = None,
        extra: Mapping[str, object] | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
    ) -> None:
        if extra is None:
            extra = {}
        if "context" not in extra:
            extra = dict(extra)
            extra["context"] = self._get_context_str()
        super()._log(level, msg, args, exc_info, extra, stack_info, stacklevel + 1)

    def set_context(self, **kwargs: Any) -> None:
        """Add key/value pairs to the current thread's logging context."""
        if not hasattr(self._context_data, "data"):
            self._context_data.data = {}
        self._context_data.data.update(kwargs)

    def get_context(self) -> dict[str, Any]:
        return dict(getattr(self._context_data, "data", {}))

    def clear_context(self) -> None:
        if hasattr(self._context_data, "data"):
            self._context_data.data = {}


class _ContextFilter(logging.Filter):
    """Guarantees a ``context`` attribute for records from plain loggers."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "context"):
            record.context = "no-context"
        return True


class LoggingContextManager:
    """Context manager that scopes an operation name and trace id on a logger."""

    def __init__(
        self, logger: logging.Logger, operation: str, **context: Any
    ) -> None:
        """
        Initialize the logging context manager.

        Args:
            logger: Logger to attach the context to
            operation: Name of the operation being executed
            **context: Additional context data
        """
        self.logger = logger
        self.operation = operation
        self.context = context.copy()
        self.start_time = time.monotonic()
        self.trace_id = context.get("trace_id", str(uuid.uuid4())[:8])
        self.old_context: dict[str, Any] = {}

    def __enter__(self) -> "LoggingContextManager":
        self.context["operation"] = self.operation
        self.context["trace_id"] = self.trace_id
        if isinstance(self.logger, ContextualLogger):
            self.old_context = self.logger.get_context()
            self.logger.set_context(**self.context)
        self.logger.debug(f"Operation started: {self.operation}")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        duration = time.monotonic() - self.start_time
        if exc_type:
            self.logger.error(
                f"Operation failed: {self.operation} after {duration:.3f}s - {exc_val}"
            )
        else:
            self.logger.debug(
                f"Operation completed: {self.operation} in {duration:.3f}s"
            )
        if isinstance(self.logger, ContextualLogger):
            self.logger._context_data.data = self.old_context


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: str | None = None,
    log_to_file: bool = False,
    log_dir: str | None = None,
    log_format: str | None = None,
) -> ContextualLogger:
    """
    Configure and return a contextual logger.

    Console output goes to stderr: stdout carries the MCP stdio transport.
    Calling this again for the same name replaces the previous handlers.

    Args:
        name: Logger name
        level: Log level name (DEBUG, INFO, ...); defaults to BITBUCKET_LOG_LEVEL
        log_to_file: Also write to a rotating file under ``log_dir``
        log_dir: Directory for log files (defaults to LOG_DIR or ./logs)
        log_format: Format string (defaults to LOG_FORMAT or DEFAULT_FORMAT)

    Returns:
        Configured contextual logger
    """
    logging.setLoggerClass(ContextualLogger)
    logger = logging.getLogger(name)

    log_level = level or os.getenv("BITBUCKET_LOG_LEVEL", DEFAULT_LOG_LEVEL)
    logger.setLevel(getattr(logging, log_level.upper(), logging.WARNING))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(log_format or os.getenv("LOG_FORMAT", DEFAULT_FORMAT))
    context_filter = _ContextFilter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(context_filter)
    logger.addHandler(console_handler)

    if log_to_file:
        log_directory = Path(log_dir or os.getenv("LOG_DIR", DEFAULT_LOG_DIRECTORY))
        log_directory.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_directory / f"{name}.log",
            maxBytes=MAX_LOG_SIZE,
            backupCount=LOG_BACKUP_COUNT,
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(context_filter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return cast(ContextualLogger, logger)


def log_operation(
    logger: logging.Logger, operation: str, **context: Any
) -> LoggingContextManager:
    """Create a context manager that logs the start, end and duration of an operation."""
    return LoggingContextManager(logger, operation, **context)
