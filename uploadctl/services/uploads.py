"""Upload service for chunked upload operations.

Provides UploadService, the public entry point to the upload core:
- Single-file uploads with progress observation and cancellation
- Resume of an existing remote session
- Sequential multi-file batches

Every operation validates its local inputs synchronously, then runs on a
background thread and returns a handle. Remote failures never raise from a
handle; they end the session in the ``error`` state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from uploadctl.core.defaults import DEFAULT_CHUNK_SIZE
from uploadctl.core.exceptions import UploadStateError
from uploadctl.core.validation import (
    validate_chunk_size,
    validate_destination,
    validate_session_id,
)
from uploadctl.models.progress import (
    BatchProgress,
    BatchResult,
    UploadProgress,
)
from uploadctl.uploaders.batch import BatchUploader
from uploadctl.uploaders.common import UploadFile
from uploadctl.uploaders.resume import ResumeCoordinator
from uploadctl.uploaders.session import UploadSession

from .base import BaseService
from .transfer import SessionStatus, TransferService

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# Uploads (or batches) allowed to run at the same time
DEFAULT_UPLOAD_WORKERS = 4

FileLike = Union[str, Path, UploadFile]


def _as_upload_file(file: FileLike) -> UploadFile:
    if isinstance(file, UploadFile):
        return file
    return UploadFile.from_path(file)


# =============================================================================
# Handles
# =============================================================================


class UploadHandle:
    """A running (or finished) single-file upload."""

    def __init__(self, session: UploadSession, future: Future) -> None:
        self.session = session
        self._future = future

    def __repr__(self) -> str:
        return f"UploadHandle({self.session!r})"

    @property
    def session_id(self) -> Optional[str]:
        return self.session.session_id

    @property
    def progress(self) -> UploadProgress:
        """Latest progress snapshot."""
        return self.session.snapshot()

    def subscribe(self, callback: Callable[[UploadProgress], None]) -> Callable[[], None]:
        """Register a progress observer; returns an unsubscribe function."""
        return self.session.subscribe(callback)

    def cancel(self, *, abort_remote: Optional[bool] = None) -> bool:
        """Cancel the upload. The session is ``cancelled`` when this returns."""
        return self.session.cancel(abort_remote=abort_remote)

    def done(self) -> bool:
        """True once the background run has returned."""
        return self._future.done()

    def wait(self, timeout: Optional[float] = None) -> Optional[str]:
        """Block until the upload ends.

        Args:
            timeout: Seconds to wait (None waits forever).

        Returns:
            Remote path on success, None on error or cancellation.

        Raises:
            concurrent.futures.TimeoutError: If ``timeout`` elapses first.
        """
        return self._future.result(timeout=timeout)


class BatchHandle:
    """A running (or finished) multi-file upload."""

    def __init__(self, batch: BatchUploader, future: Future) -> None:
        self.batch = batch
        self._future = future

    @property
    def progress(self) -> BatchProgress:
        """Latest aggregate progress snapshot."""
        return self.batch.snapshot()

    @property
    def sessions(self) -> dict[str, UploadSession]:
        """File key (resolved path) -> session, in input order."""
        return self.batch.sessions

    def cancel(self, *, abort_remote: Optional[bool] = None) -> None:
        """Stop the batch; files not yet started end as cancelled."""
        self.batch.cancel(abort_remote=abort_remote)

    def cancel_file(self, path: Union[str, Path], *, abort_remote: Optional[bool] = None) -> bool:
        """Cancel one file; the rest of the batch continues."""
        return self.batch.cancel_file(str(path), abort_remote=abort_remote)

    def done(self) -> bool:
        return self._future.done()

    def wait(self, timeout: Optional[float] = None) -> BatchResult:
        """Block until every file is terminal and return the outcomes."""
        return self._future.result(timeout=timeout)


# =============================================================================
# UploadService
# =============================================================================


class UploadService(BaseService):
    """Service for chunked upload operations.

    Example:
        >>> service = UploadService(client)
        >>> handle = service.start_upload("clip.mp4", "project-1")
        >>> handle.wait()
        'uploads/project-1/clip.mp4'
    """

    def __init__(
        self,
        client: Any,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        abort_remote_on_cancel: bool = True,
        max_workers: int = DEFAULT_UPLOAD_WORKERS,
        transfer: Optional[TransferService] = None,
    ) -> None:
        """Initialize service.

        Args:
            client: UploadClient instance.
            chunk_size: Chunk size in bytes for new sessions.
            abort_remote_on_cancel: Default for notifying the server on cancel.
            max_workers: Uploads that may run concurrently.
            transfer: Transfer client (built from ``client`` if omitted).

        Raises:
            InvalidChunkSizeError: If chunk_size is not positive.
        """
        super().__init__(client)
        self.chunk_size = validate_chunk_size(chunk_size)
        self.abort_remote_on_cancel = abort_remote_on_cancel
        self.transfer = transfer or TransferService(client)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="uploadctl"
        )

    def close(self, *, cancel_pending: bool = False) -> None:
        """Shut down the worker pool.

        Args:
            cancel_pending: Drop uploads that have not started yet.
        """
        self._executor.shutdown(wait=not cancel_pending, cancel_futures=cancel_pending)

    def __enter__(self) -> UploadService:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # =========================================================================
    # Sessions
    # =========================================================================

    def new_session(
        self,
        file: FileLike,
        destination: Optional[str] = None,
        *,
        metadata: Optional[Mapping[str, Any]] = None,
        on_progress: Optional[Callable[[UploadProgress], None]] = None,
    ) -> UploadSession:
        """Build an idle session with this service's settings.

        Raises:
            PathValidationError: If the file does not exist.
        """
        return UploadSession(
            self.transfer,
            _as_upload_file(file),
            destination=destination,
            chunk_size=self.chunk_size,
            metadata=metadata,
            abort_remote_on_cancel=self.abort_remote_on_cancel,
            progress_callback=on_progress,
        )

    @staticmethod
    def _drive(session: UploadSession, run: Callable[[], Optional[str]]) -> Optional[str]:
        # Cancelled while queued: nothing to run
        if session.is_terminal:
            return session.result_path
        try:
            return run()
        except UploadStateError:
            return session.result_path

    # =========================================================================
    # Operations
    # =========================================================================

    def start_upload(
        self,
        file: FileLike,
        destination: Optional[str],
        *,
        metadata: Optional[Mapping[str, Any]] = None,
        on_progress: Optional[Callable[[UploadProgress], None]] = None,
    ) -> UploadHandle:
        """Upload one file in the background.

        Args:
            file: Local path or UploadFile.
            destination: Destination context (project ID).
            metadata: Extra init fields.
            on_progress: Observer for progress snapshots.

        Returns:
            Handle for observing, cancelling, and waiting.

        Raises:
            ValidationError: If destination is missing or the file does not exist.
                Nothing is sent in that case.
        """
        destination = validate_destination(destination)
        session = self.new_session(
            file, destination, metadata=metadata, on_progress=on_progress
        )
        logger.debug("Queueing upload of %s to %s", session.file_name, destination)
        future = self._executor.submit(self._drive, session, session.start)
        return UploadHandle(session, future)

    def cancel_upload(self, handle: UploadHandle, *, abort_remote: Optional[bool] = None) -> bool:
        """Cancel an upload started by this service.

        Returns:
            True if the session was cancelled by this call.
        """
        return handle.cancel(abort_remote=abort_remote)

    def resume_upload(
        self,
        session_id: str,
        file: FileLike,
        *,
        destination: Optional[str] = None,
        on_progress: Optional[Callable[[UploadProgress], None]] = None,
    ) -> UploadHandle:
        """Continue an interrupted session, sending only missing chunks.

        Args:
            session_id: Session ID from the earlier init.
            file: The same local file that was being uploaded.
            destination: Recorded for logging; the server already knows it.
            on_progress: Observer for progress snapshots.

        Raises:
            ValidationError: If session_id is blank or the file does not exist.
        """
        session_id = validate_session_id(session_id)
        session = self.new_session(file, destination, on_progress=on_progress)
        coordinator = ResumeCoordinator(self.transfer)
        logger.debug("Queueing resume of %s (session %s)", session.file_name, session_id)
        future = self._executor.submit(
            self._drive, session, lambda: session.resume(session_id, coordinator)
        )
        return UploadHandle(session, future)

    def upload_all(
        self,
        files: Sequence[FileLike],
        destination: Optional[str],
        *,
        on_progress: Optional[Callable[[BatchProgress], None]] = None,
        on_file_progress: Optional[Callable[[str, UploadProgress], None]] = None,
    ) -> BatchHandle:
        """Upload files one after another in the background.

        A file that fails does not stop the batch.

        Raises:
            ValidationError: If destination is missing, a file does not exist,
                or a file is listed twice.
        """
        destination = validate_destination(destination)
        upload_files = [_as_upload_file(f) for f in files]

        batch = BatchUploader(
            lambda file: self.new_session(file, destination),
            progress_callback=on_progress,
            file_progress_callback=on_file_progress,
        )
        batch.prepare(upload_files)
        logger.debug("Queueing batch of %d file(s) to %s", len(upload_files), destination)
        future = self._executor.submit(batch.upload_all, upload_files)
        return BatchHandle(batch, future)

    def query_status(self, session_id: str) -> SessionStatus:
        """Fetch the server's view of a session.

        Raises:
            ValidationError: If session_id is blank.
            StatusQueryError: If the status cannot be fetched.
        """
        return self.transfer.query_status(validate_session_id(session_id))

    def cancel_remote(self, session_id: str) -> bool:
        """Ask the server to drop a session (best effort).

        Returns:
            True if the server accepted the request.
        """
        return self.transfer.cancel_session(validate_session_id(session_id))
