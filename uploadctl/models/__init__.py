"""Data models for uploadctl.

Provides Pydantic models for API payloads and dataclasses for progress tracking.
"""

from __future__ import annotations

from .base import BaseModel
from .progress import (
    BatchProgress,
    BatchResult,
    BatchStatus,
    FileOutcome,
    UploadProgress,
    UploadStatus,
    percent,
)
from .transfer import ChunkResponse, CompleteResponse, InitResponse, StatusResponse

__all__ = [
    # Base
    "BaseModel",
    # API payloads
    "InitResponse",
    "ChunkResponse",
    "CompleteResponse",
    "StatusResponse",
    # Progress
    "UploadStatus",
    "UploadProgress",
    "BatchStatus",
    "BatchProgress",
    "FileOutcome",
    "BatchResult",
    "percent",
]
