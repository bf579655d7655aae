"""Exception hierarchy for uploadctl.

Provides typed exceptions for different failure modes with clear error messages.
"""

from __future__ import annotations

from typing import Any


class UploadCtlError(Exception):
    """Base exception for all uploadctl errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(UploadCtlError):
    """Error in configuration (missing, invalid, or malformed)."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class ProfileNotFoundError(ConfigurationError):
    """Requested profile does not exist."""

    def __init__(self, profile: str):
        super().__init__(f"Profile not found: {profile}", field="profile", value=profile)
        self.profile = profile


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(UploadCtlError):
    """Input validation failed."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class InvalidURLError(ValidationError):
    """Invalid URL format."""

    def __init__(self, url: str, reason: str = ""):
        msg = f"Invalid URL: {url}"
        if reason:
            msg = f"{msg} - {reason}"
        super().__init__(msg, field="url", value=url)
        self.url = url
        self.reason = reason


class InvalidChunkSizeError(ValidationError):
    """Chunk size is not a positive byte count."""

    def __init__(self, chunk_size: Any):
        super().__init__(
            f"Invalid chunk size: {chunk_size} (must be a positive number of bytes)",
            field="chunk_size",
            value=chunk_size,
        )
        self.chunk_size = chunk_size


class PathValidationError(ValidationError):
    """Path validation failed."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Invalid path: {path} - {reason}", field="path", value=path)
        self.path = path
        self.reason = reason


# =============================================================================
# Connection Errors
# =============================================================================


class ConnectionError(UploadCtlError):
    """Base class for connection-related errors."""

    def __init__(self, message: str, url: str | None = None):
        details = {"url": url} if url else {}
        super().__init__(message, details)
        self.url = url


class NetworkError(ConnectionError):
    """Network-level error (DNS, TCP, TLS)."""

    def __init__(self, url: str, cause: str | None = None):
        msg = f"Network error connecting to {url}"
        if cause:
            msg = f"{msg}: {cause}"
        super().__init__(msg, url)
        self.cause = cause


class ServerUnreachableError(ConnectionError):
    """Server is not reachable."""

    def __init__(self, url: str):
        super().__init__(f"Server unreachable: {url}", url)


class TimeoutError(ConnectionError):
    """Request timed out."""

    def __init__(self, url: str, timeout: float):
        super().__init__(f"Request timed out after {timeout}s: {url}", url)
        self.timeout = timeout


class RequestFailedError(ConnectionError):
    """Server answered with a non-success status."""

    def __init__(self, url: str, status_code: int, detail: str = ""):
        msg = f"HTTP {status_code}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg, url)
        self.status_code = status_code
        self.detail = detail
        self.details["status_code"] = status_code


# =============================================================================
# Transfer Errors
# =============================================================================


class TransferError(UploadCtlError):
    """A remote upload operation failed."""

    operation = "transfer"

    def __init__(
        self,
        message: str,
        session_id: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        full_details: dict[str, Any] = {"operation": self.operation}
        if session_id:
            full_details["session_id"] = session_id
        if status_code is not None:
            full_details["status_code"] = status_code
        if details:
            full_details.update(details)
        super().__init__(message, full_details)
        self.session_id = session_id
        self.status_code = status_code


class InitError(TransferError):
    """Upload session could not be created."""

    operation = "init"


class ChunkTransferError(TransferError):
    """A single chunk failed to transfer."""

    operation = "chunk"

    def __init__(
        self,
        message: str,
        session_id: str | None = None,
        chunk_index: int | None = None,
        status_code: int | None = None,
    ):
        details = {"chunk_index": chunk_index} if chunk_index is not None else None
        super().__init__(message, session_id, status_code, details)
        self.chunk_index = chunk_index


class CompletionError(TransferError):
    """Server refused to finalize the upload session."""

    operation = "complete"


class StatusQueryError(TransferError):
    """Session status could not be fetched."""

    operation = "status"


# =============================================================================
# Session Lifecycle
# =============================================================================


class CancelledByUser(UploadCtlError):
    """Upload was cancelled on request. A terminal outcome, not a failure."""

    def __init__(self, session_id: str | None = None):
        details = {"session_id": session_id} if session_id else {}
        super().__init__("Upload cancelled", details)
        self.session_id = session_id


class UploadStateError(UploadCtlError):
    """Operation is not valid in the session's current state."""

    def __init__(self, operation: str, state: str):
        super().__init__(
            f"Cannot {operation} an upload session in state '{state}'",
            {"operation": operation, "state": state},
        )
        self.operation = operation
        self.state = state
