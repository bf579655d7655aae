"""Service layer for the upload API.

Provides service classes that encapsulate upload REST API operations.
"""

from __future__ import annotations

from .base import BaseService
from .transfer import ChunkReceipt, SessionStatus, TransferService
from .uploads import BatchHandle, UploadHandle, UploadService

__all__ = [
    "BaseService",
    "TransferService",
    "ChunkReceipt",
    "SessionStatus",
    "UploadService",
    "UploadHandle",
    "BatchHandle",
]
