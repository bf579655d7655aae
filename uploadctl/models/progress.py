"""Progress models for tracking upload status.

Provides the session status enum and the immutable snapshots handed to
progress observers.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional


def percent(part: int, whole: int) -> int:
    """Whole-number percentage, rounding halves up."""
    if whole <= 0:
        return 0
    return min(100, math.floor(100 * part / whole + 0.5))


class UploadStatus(Enum):
    """Lifecycle states of a single-file upload session."""

    IDLE = "idle"
    INITIALIZING = "initializing"
    UPLOADING = "uploading"
    COMPLETING = "completing"
    COMPLETE = "complete"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Complete, error and cancelled admit no further transitions."""
        return self in (UploadStatus.COMPLETE, UploadStatus.ERROR, UploadStatus.CANCELLED)

    @property
    def is_active(self) -> bool:
        """Check if a transfer is under way."""
        return self in (
            UploadStatus.INITIALIZING,
            UploadStatus.UPLOADING,
            UploadStatus.COMPLETING,
        )


@dataclass(frozen=True)
class UploadProgress:
    """Snapshot of one upload session."""

    status: UploadStatus
    file_name: str
    total_size: int
    uploaded_size: int = 0
    percentage: int = 0
    chunks_uploaded: int = 0
    chunks_total: int = 0
    session_id: Optional[str] = None
    error: Optional[str] = None
    result_path: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """Check if the upload finished successfully."""
        return self.status == UploadStatus.COMPLETE

    @property
    def is_terminal(self) -> bool:
        """Check if the session reached a terminal state."""
        return self.status.is_terminal

    @property
    def fraction(self) -> float:
        """Completed fraction in [0, 1]."""
        if self.status == UploadStatus.COMPLETE:
            return 1.0
        if self.total_size == 0:
            return 0.0
        return self.uploaded_size / self.total_size

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        data = asdict(self)
        data["status"] = self.status.value
        return data


class BatchStatus(Enum):
    """Lifecycle of a batch; the batch itself never errors."""

    IDLE = "idle"
    UPLOADING = "uploading"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class BatchProgress:
    """Aggregate snapshot of a sequential multi-file upload."""

    status: BatchStatus
    total_files: int
    completed_files: int = 0
    failed_files: int = 0
    cancelled_files: int = 0
    current_file: Optional[str] = None
    percentage: int = 0

    @property
    def finished_files(self) -> int:
        """Files that reached a terminal state."""
        return self.completed_files + self.failed_files + self.cancelled_files

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class FileOutcome:
    """Terminal result of one file in a batch."""

    file_path: str
    status: UploadStatus
    session_id: Optional[str] = None
    result_path: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        """Check if the file uploaded successfully."""
        return self.status == UploadStatus.COMPLETE


@dataclass
class BatchResult:
    """Result of :meth:`BatchUploader.upload_all`."""

    outcomes: list[FileOutcome] = field(default_factory=list)
    duration: float = 0.0

    @property
    def result_paths(self) -> list[str]:
        """Remote paths of successful files, in input order."""
        return [o.result_path for o in self.outcomes if o.success and o.result_path]

    @property
    def succeeded(self) -> int:
        """Number of files that completed."""
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        """Number of files that ended in error."""
        return sum(1 for o in self.outcomes if o.status == UploadStatus.ERROR)

    @property
    def cancelled(self) -> int:
        """Number of files that were cancelled."""
        return sum(1 for o in self.outcomes if o.status == UploadStatus.CANCELLED)

    @property
    def success(self) -> bool:
        """Check if every file completed."""
        return all(o.success for o in self.outcomes)

    @property
    def errors(self) -> list[str]:
        """Human-readable failure lines."""
        return [f"{o.file_path}: {o.error}" for o in self.outcomes if o.error]
