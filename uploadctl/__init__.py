"""uploadctl - Resumable chunked uploads from the command line.

This package splits large files into fixed-size chunks and sends them to a
chunked upload API, supporting:
- Progress reporting and immediate cancellation
- Resuming interrupted sessions from the server's record
- Sequential multi-file batches
"""

__version__ = "0.1.0"

from uploadctl.core.client import UploadClient
from uploadctl.core.config import Config, Profile
from uploadctl.core.exceptions import (
    ChunkTransferError,
    ConfigurationError,
    ConnectionError,
    NetworkError,
    TransferError,
    UploadCtlError,
    ValidationError,
)
from uploadctl.models.progress import BatchProgress, BatchResult, UploadProgress, UploadStatus
from uploadctl.services.uploads import BatchHandle, UploadHandle, UploadService

__all__ = [
    "__version__",
    "UploadClient",
    "UploadService",
    "UploadHandle",
    "BatchHandle",
    "UploadStatus",
    "UploadProgress",
    "BatchProgress",
    "BatchResult",
    "Config",
    "Profile",
    "UploadCtlError",
    "ConfigurationError",
    "ConnectionError",
    "NetworkError",
    "TransferError",
    "ChunkTransferError",
    "ValidationError",
]
