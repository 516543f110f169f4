"""
Logging for the credential core.

This module provides:
1. ContextAwareLogger for console logs (with pipe-delimited extras)
2. PrincipalContextFilter that stamps the authenticated principal on records
3. AzureQueueHandler for optionally shipping structured logs to a storage queue

Secrets never reach these loggers; callers log prefixes and identifiers only.
"""

import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from azure.storage.queue import QueueClient

from ..config import get_config
from ..constants import LogContextKey
from .json_utils import dumps

_configured_logger: Optional["ContextAwareLogger"] = None

# Attributes every LogRecord carries; anything else came in through ``extra``
_STANDARD_RECORD_ATTRS = frozenset(
    [
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
        LogContextKey.PRINCIPAL_ID.value,
    ]
)


class ContextAwareLogger:
    """
    Logger wrapper that formats extra attributes in the message while preserving them.

    This keeps extras visible on plain console output where no formatter
    knows about them.
    """

    def __init__(self, logger: logging.Logger):
        """Initialize with an existing logger."""
        self.logger = logger

    def _log_with_formatted_extra(self, level: str, msg: str, **kwargs: Any) -> None:
        extra = kwargs.pop("extra", None) or {}

        if extra:
            extra_str = " | ".join(f"{k}={v}" for k, v in extra.items())
            full_msg = f"{msg} | {extra_str}"
        else:
            full_msg = msg

        log_method = getattr(self.logger, level)
        log_method(full_msg, extra=extra, **kwargs)

    def set_level(self, level: Union[int, str]) -> None:
        """Set the logging level of the underlying logger."""
        self.logger.setLevel(level)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log_with_formatted_extra("info", msg, **kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._log_with_formatted_extra("error", msg, **kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._log_with_formatted_extra("warning", msg, **kwargs)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log_with_formatted_extra("debug", msg, **kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        self._log_with_formatted_extra("exception", msg, **kwargs)


class PrincipalContextFilter(logging.Filter):
    """Logging filter that adds the current principal ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        # Lazy import to avoid circular dependency
        from ..context.principal_context import PrincipalContext

        principal_id = PrincipalContext.get_current_principal_id()
        if principal_id:
            setattr(record, LogContextKey.PRINCIPAL_ID.value, principal_id)

        return True


class AzureQueueHandler(logging.Handler):
    """
    Logging handler that batches structured log entries onto an Azure Storage Queue.

    Entries are buffered and sent once ``batch_size`` is reached or the
    handler is flushed/closed. Failures to ship are reported on stderr and
    never propagate into the code that logged.
    """

    def __init__(
        self,
        queue_name: str = "logs-queue",
        connection_string: Optional[str] = None,
        batch_size: int = 10,
        queue_client: Optional[QueueClient] = None,
    ):
        """
        Initialize the Azure Queue handler.

        Args:
            queue_name: Name of the queue to send logs to
            connection_string: Azure Storage connection string
            batch_size: Number of logs to batch before sending
            queue_client: Pre-built client (takes precedence over the connection string)
        """
        super().__init__()
        self.queue_name = queue_name
        self.connection_string = connection_string or get_config().queue.connection_string
        self.batch_size = batch_size
        self.log_buffer: List[Dict[str, Any]] = []
        self._queue_client = queue_client

        if not self.connection_string and queue_client is None:
            sys.stderr.write("Azure Storage connection string not provided\n")

    def _get_queue_client(self) -> Optional[QueueClient]:
        if self._queue_client is None and self.connection_string:
            self._queue_client = QueueClient.from_connection_string(
                conn_str=self.connection_string, queue_name=self.queue_name
            )
        return self._queue_client

    def build_entry(self, record: logging.LogRecord) -> Dict[str, Any]:
        """Convert a log record into the structured entry shipped to the queue."""
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        principal_id = getattr(record, LogContextKey.PRINCIPAL_ID.value, None)
        if principal_id:
            log_entry[LogContextKey.PRINCIPAL_ID.value] = principal_id

        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_ATTRS
            and not key.startswith("_")
            and not callable(value)
        }
        if context:
            log_entry["context"] = context

        if record.exc_info and record.exc_info[0]:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": [
                    line.rstrip() for line in traceback.format_exception(*record.exc_info)
                ],
            }

        return log_entry

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.log_buffer.append(self.build_entry(record))
            if len(self.log_buffer) >= self.batch_size:
                self.flush()
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        """Send any buffered log entries to the queue."""
        if not self.log_buffer:
            return

        queue_client = self._get_queue_client()
        if queue_client is None:
            return

        for log_entry in self.log_buffer:
            try:
                queue_client.send_message(dumps(log_entry))
            except Exception as e:
                sys.stderr.write(f"Error sending log entry to Azure Queue: {e}\n")

        self.log_buffer.clear()

    def close(self) -> None:
        """Flush any remaining logs before closing."""
        self.flush()
        super().close()


def _resolve_level(log_level: Union[int, str]) -> int:
    if isinstance(log_level, str):
        return getattr(logging, log_level.upper(), logging.INFO)
    return log_level


def configure_logging(
    service_name: str,
    log_level: Optional[Union[int, str]] = None,
    enable_queue: Optional[bool] = None,
    queue_name: Optional[str] = None,
    queue_batch_size: int = 10,
    connection_string: Optional[str] = None,
) -> ContextAwareLogger:
    """
    Configure logging with console and optional queue output.

    Args:
        service_name: Name of the hosting service, used as the logger name suffix
        log_level: Logging level (default: from config.logging.level)
        enable_queue: Whether to ship logs to Azure Queue (default: config.features.enable_logs_queue)
        queue_name: Name of the queue to send logs to (default: config.queue.logs_queue_name)
        queue_batch_size: Number of logs to batch before sending
        connection_string: Azure Storage connection string (default: from config)

    Returns:
        The configured logger wrapped with ContextAwareLogger
    """
    global _configured_logger

    app_config = get_config()

    if log_level is None:
        log_level = app_config.logging.level
    if enable_queue is None:
        enable_queue = app_config.features.enable_logs_queue
    if connection_string is None:
        connection_string = app_config.queue.connection_string
    queue_name = queue_name or app_config.queue.logs_queue_name

    level = _resolve_level(log_level)

    logger = logging.getLogger(f"dev_portal_core.{service_name}")
    logger.setLevel(level)
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    principal_filter = PrincipalContextFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(app_config.logging.format))
    console_handler.addFilter(principal_filter)
    logger.addHandler(console_handler)

    if enable_queue:
        queue_handler = AzureQueueHandler(
            queue_name=queue_name, connection_string=connection_string, batch_size=queue_batch_size
        )
        queue_handler.setLevel(level)
        queue_handler.addFilter(principal_filter)
        logger.addHandler(queue_handler)

    wrapped_logger = ContextAwareLogger(logger)
    wrapped_logger.info(
        "Logger configured",
        extra={
            "service_name": service_name,
            "queue_logging": enable_queue,
            "queue_name": queue_name if enable_queue else None,
        },
    )
    _configured_logger = wrapped_logger
    return wrapped_logger


def get_logger(log_level: Optional[Union[int, str]] = None) -> ContextAwareLogger:
    """
    Get the configured logger, or a wrapped package logger when none is configured.

    Args:
        log_level: Optional log level to set

    Returns:
        Logger instance
    """
    if _configured_logger is not None:
        return _configured_logger

    logger = logging.getLogger("dev_portal_core")

    if log_level is None:
        log_level = get_config().logging.level
    logger.setLevel(_resolve_level(log_level))

    return ContextAwareLogger(logger)


def reset_logging() -> None:
    """Drop the configured logger so ``get_logger`` falls back to the package logger."""
    global _configured_logger
    if _configured_logger is not None:
        for handler in _configured_logger.logger.handlers[:]:
            _configured_logger.logger.removeHandler(handler)
            handler.close()
    _configured_logger = None
