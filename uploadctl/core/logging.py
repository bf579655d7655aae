"""Logging utilities for uploadctl.

Provides structured logging with audit trail support.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from typing import Any, Optional

# =============================================================================
# Constants
# =============================================================================

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
AUDIT_LOGGER_NAME = "uploadctl.audit"


# =============================================================================
# Logger Setup
# =============================================================================


def setup_logging(
    level: int = logging.WARNING,
    *,
    quiet: bool = False,
    verbose: bool = False,
) -> None:
    """Configure logging for uploadctl.

    Args:
        level: Base logging level.
        quiet: If True, only show errors.
        verbose: If True, show debug messages.
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stderr,
    )

    # Suppress noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)


# =============================================================================
# Log Context
# =============================================================================


class LogContext:
    """Context manager for structured logging with context fields."""

    def __init__(
        self,
        operation: str,
        logger: Optional[logging.Logger] = None,
        **context: Any,
    ):
        """Initialize log context.

        Args:
            operation: Name of the operation.
            logger: Logger instance.
            **context: Additional context fields.
        """
        self.operation = operation
        self.logger = logger or get_logger(__name__)
        self.context = context
        self.start_time: Optional[datetime] = None

    def _context_str(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in self.context.items())

    def __enter__(self) -> "LogContext":
        """Enter context and log start."""
        self.start_time = datetime.now()
        self.logger.info("Starting %s (%s)", self.operation, self._context_str())
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit context and log completion."""
        duration = self.elapsed

        if exc_type:
            self.logger.error(
                "%s failed after %.2fs: %s",
                self.operation,
                duration,
                exc_val,
            )
        else:
            self.logger.info("%s finished in %.2fs", self.operation, duration)

    @property
    def elapsed(self) -> float:
        """Seconds since the context was entered."""
        if self.start_time is None:
            return 0.0
        return (datetime.now() - self.start_time).total_seconds()

    def bind(self, **context: Any) -> None:
        """Add context fields after entering (e.g. an assigned session ID)."""
        self.context.update(context)

    def log(self, level: int, message: str, *args: Any) -> None:
        """Log a message with context.

        Args:
            level: Log level.
            message: Message format string.
            *args: Format arguments.
        """
        full_message = f"[{self.operation}] {message} ({self._context_str()})"
        self.logger.log(level, full_message, *args)

    def info(self, message: str, *args: Any) -> None:
        """Log info message."""
        self.log(logging.INFO, message, *args)

    def warning(self, message: str, *args: Any) -> None:
        """Log warning message."""
        self.log(logging.WARNING, message, *args)

    def error(self, message: str, *args: Any) -> None:
        """Log error message."""
        self.log(logging.ERROR, message, *args)

    def debug(self, message: str, *args: Any) -> None:
        """Log debug message."""
        self.log(logging.DEBUG, message, *args)


# =============================================================================
# Audit Logger
# =============================================================================


class AuditLogger:
    """Logger for audit trail of upload outcomes."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """Initialize audit logger.

        Args:
            logger: Logger instance.
        """
        self.logger = logger or logging.getLogger(AUDIT_LOGGER_NAME)

    def log_upload(
        self,
        outcome: str,
        *,
        file_name: str,
        session_id: Optional[str] = None,
        destination: Optional[str] = None,
        total_size: Optional[int] = None,
        result_path: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        """Log the terminal outcome of an upload session.

        Args:
            outcome: Terminal status (complete, error, cancelled).
            file_name: Uploaded file name.
            session_id: Remote session ID, if one was assigned.
            destination: Destination context.
            total_size: File size in bytes.
            result_path: Remote storage location on success.
            error: Failure cause.
        """
        audit_record: dict[str, Any] = {
            "timestamp": datetime.now().isoformat(),
            "operation": "upload",
            "outcome": outcome,
            "file": file_name,
        }

        if session_id:
            audit_record["session_id"] = session_id
        if destination:
            audit_record["destination"] = destination
        if total_size is not None:
            audit_record["total_size"] = total_size
        if result_path:
            audit_record["result_path"] = result_path
        if error:
            audit_record["error"] = error

        level = logging.WARNING if outcome == "error" else logging.INFO
        self.logger.log(level, "AUDIT: %s", audit_record)


def get_audit_logger() -> AuditLogger:
    """Get the audit logger instance.

    Returns:
        AuditLogger instance.
    """
    return AuditLogger()
