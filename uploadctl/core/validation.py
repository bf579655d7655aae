"""Input validation for uploadctl.

All checks run locally and raise before any request is sent.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from uploadctl.core.exceptions import (
    InvalidChunkSizeError,
    InvalidURLError,
    PathValidationError,
    ValidationError,
)

# =============================================================================
# Server
# =============================================================================


def validate_server_url(url: str) -> str:
    """Validate and normalize an API server URL.

    Args:
        url: Server URL (scheme required).

    Returns:
        URL without trailing slash.

    Raises:
        InvalidURLError: If the URL is empty or not http(s).
    """
    if not url or not url.strip():
        raise InvalidURLError(url or "", "URL is empty")

    url = url.strip()
    parsed = urlparse(url)

    if parsed.scheme not in ("http", "https"):
        raise InvalidURLError(url, "scheme must be http or https")
    if not parsed.netloc:
        raise InvalidURLError(url, "missing host")

    return url.rstrip("/")


def validate_timeout(timeout: Any) -> float:
    """Validate a request timeout in seconds."""
    try:
        value = float(timeout)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid timeout: {timeout}", field="timeout", value=timeout)
    if value <= 0:
        raise ValidationError(
            f"Invalid timeout: {timeout} (must be positive)", field="timeout", value=timeout
        )
    return value


# =============================================================================
# Upload Parameters
# =============================================================================


def validate_chunk_size(chunk_size: Any) -> int:
    """Validate a chunk size in bytes.

    Raises:
        InvalidChunkSizeError: If not a positive integer.
    """
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
        raise InvalidChunkSizeError(chunk_size)
    return chunk_size


def validate_destination(destination: str | None) -> str:
    """Validate the destination context (project ID) for an upload.

    Raises:
        ValidationError: If unset or blank.
    """
    if destination is None or not str(destination).strip():
        raise ValidationError("No destination provided for upload", field="destination")
    return str(destination).strip()


def validate_session_id(session_id: str | None) -> str:
    """Validate an upload session identifier."""
    if session_id is None or not str(session_id).strip():
        raise ValidationError("Session ID is required", field="session_id")
    value = str(session_id).strip()
    if "/" in value:
        raise ValidationError(
            f"Invalid session ID: {value}", field="session_id", value=value
        )
    return value


# =============================================================================
# Paths
# =============================================================================


def validate_path_exists(path: str | Path, *, must_be_file: bool = False) -> Path:
    """Validate that a path exists.

    Args:
        path: Path to check.
        must_be_file: Also require a regular file.

    Returns:
        Resolved path.

    Raises:
        PathValidationError: If missing or of the wrong kind.
    """
    p = Path(path).expanduser()
    if not p.exists():
        raise PathValidationError(str(path), "does not exist")
    if must_be_file and not p.is_file():
        raise PathValidationError(str(path), "not a regular file")
    return p.resolve()
