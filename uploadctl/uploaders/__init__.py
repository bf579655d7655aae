"""Chunked upload engine for uploadctl.

This module provides the pieces that move a file to the server:
- Chunk planning (fixed-size byte ranges)
- The per-file upload session state machine
- Resume of interrupted sessions
- Sequential multi-file batches

These are internal implementation details. Use `UploadService` from
`uploadctl.services.uploads` as the public API.
"""

from uploadctl.uploaders.batch import BatchUploader
from uploadctl.uploaders.cancellation import CancellationToken
from uploadctl.uploaders.common import UploadFile, collect_files, expand_upload_paths
from uploadctl.uploaders.constants import CHUNK_SIZE, FALLBACK_CONTENT_TYPE
from uploadctl.uploaders.planner import Chunk, acknowledged_bytes, count_chunks, plan_chunks
from uploadctl.uploaders.resume import ResumeCoordinator, ResumePlan, missing_chunks
from uploadctl.uploaders.session import UploadSession

__all__ = [
    # Constants
    "CHUNK_SIZE",
    "FALLBACK_CONTENT_TYPE",
    # Planning
    "Chunk",
    "count_chunks",
    "plan_chunks",
    "acknowledged_bytes",
    # Files
    "UploadFile",
    "collect_files",
    "expand_upload_paths",
    # Sessions
    "CancellationToken",
    "UploadSession",
    "ResumeCoordinator",
    "ResumePlan",
    "missing_chunks",
    "BatchUploader",
]
