"""Upload session state machine.

One :class:`UploadSession` drives one file through::

    idle -> initializing -> uploading -> completing -> complete
                 |              |             |
                 +-> error <----+-------------+
    any non-terminal state -> cancelled

Chunks are sent in ascending index order with one request in flight. Every
transfer call runs on a private worker thread so that :meth:`cancel` takes
effect immediately, even while a request is outstanding. Terminal states are
sticky: a request that settles after the session ended is discarded.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, Mapping, Optional, TypeVar

from uploadctl.core.defaults import DEFAULT_CHUNK_SIZE
from uploadctl.core.exceptions import CancelledByUser, TransferError, UploadStateError
from uploadctl.core.logging import AuditLogger, LogContext, get_audit_logger
from uploadctl.core.validation import (
    validate_chunk_size,
    validate_destination,
    validate_session_id,
)
from uploadctl.models.progress import UploadProgress, UploadStatus, percent
from uploadctl.uploaders.cancellation import CancellationToken
from uploadctl.uploaders.common import UploadFile
from uploadctl.uploaders.planner import acknowledged_bytes, plan_chunks
from uploadctl.uploaders.resume import ResumeCoordinator

if TYPE_CHECKING:
    from uploadctl.services.transfer import TransferService

logger = logging.getLogger(__name__)

T = TypeVar("T")

ProgressCallback = Callable[[UploadProgress], None]


class UploadSession:
    """Lifecycle of a single file's chunked upload."""

    def __init__(
        self,
        transfer: "TransferService",
        file: UploadFile,
        *,
        destination: Optional[str] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        metadata: Optional[Mapping[str, Any]] = None,
        abort_remote_on_cancel: bool = True,
        progress_callback: Optional[ProgressCallback] = None,
        audit: Optional[AuditLogger] = None,
    ) -> None:
        """Create an idle session.

        Args:
            transfer: Transfer client used for every remote call.
            file: Local file to upload.
            destination: Destination context (project ID); required by start().
            chunk_size: Fixed chunk size in bytes.
            metadata: Extra init fields sent with the session request.
            abort_remote_on_cancel: Notify the server when cancelled.
            progress_callback: Observer for progress snapshots.
            audit: Audit logger for terminal outcomes.

        Raises:
            InvalidChunkSizeError: If chunk_size is not positive.
        """
        self.transfer = transfer
        self.file = file
        self.destination = destination
        self.chunk_size = validate_chunk_size(chunk_size)
        self.metadata = dict(metadata or {})
        self.abort_remote_on_cancel = abort_remote_on_cancel
        self.token = CancellationToken()
        self.chunks = plan_chunks(file.size, self.chunk_size)
        self.audit = audit or get_audit_logger()

        self._lock = threading.RLock()
        self._status = UploadStatus.IDLE
        self._session_id: Optional[str] = None
        self._acknowledged: set[int] = set()
        self._error: Optional[str] = None
        self._result_path: Optional[str] = None
        self._abort_remote = abort_remote_on_cancel

        # Guards observers and queued snapshots; never held while the state lock is taken
        self._emit_lock = threading.Lock()
        self._observers: list[ProgressCallback] = []
        self._pending: deque[UploadProgress] = deque()
        self._emitting = False
        self._executor: Optional[ThreadPoolExecutor] = None

        if progress_callback is not None:
            self._observers.append(progress_callback)

    def __repr__(self) -> str:
        return (
            f"UploadSession(file={self.file.name!r}, status={self._status.value}, "
            f"session_id={self._session_id!r})"
        )

    # =========================================================================
    # State Accessors
    # =========================================================================

    @property
    def status(self) -> UploadStatus:
        """Current lifecycle state."""
        return self._status

    @property
    def session_id(self) -> Optional[str]:
        """Remote session ID, once assigned."""
        return self._session_id

    @property
    def file_name(self) -> str:
        return self.file.name

    @property
    def total_size(self) -> int:
        return self.file.size

    @property
    def total_chunks(self) -> int:
        return len(self.chunks)

    @property
    def chunks_acknowledged(self) -> frozenset[int]:
        """Chunk indices the server has confirmed."""
        with self._lock:
            return frozenset(self._acknowledged)

    @property
    def uploaded_size(self) -> int:
        """Bytes covered by acknowledged chunks."""
        with self._lock:
            return acknowledged_bytes(self.chunks, self._acknowledged)

    @property
    def error(self) -> Optional[str]:
        """Failure cause; set only in the error state."""
        return self._error

    @property
    def result_path(self) -> Optional[str]:
        """Remote storage location; set only in the complete state."""
        return self._result_path

    @property
    def is_terminal(self) -> bool:
        return self._status.is_terminal

    # =========================================================================
    # Observers
    # =========================================================================

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register a progress observer.

        Returns:
            Function that removes the observer.
        """
        with self._emit_lock:
            self._observers.append(callback)

        def unsubscribe() -> None:
            with self._emit_lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return unsubscribe

    def snapshot(self) -> UploadProgress:
        """Current progress as an immutable snapshot."""
        with self._lock:
            uploaded = acknowledged_bytes(self.chunks, self._acknowledged)
            complete = self._status == UploadStatus.COMPLETE
            return UploadProgress(
                status=self._status,
                file_name=self.file.name,
                total_size=self.file.size,
                uploaded_size=uploaded,
                percentage=100 if complete else percent(uploaded, self.file.size),
                chunks_uploaded=len(self._acknowledged),
                chunks_total=len(self.chunks),
                session_id=self._session_id,
                error=self._error,
                result_path=self._result_path,
            )

    def _queue_snapshot(self) -> None:
        # Called with the state lock held, so snapshots queue in transition order
        snap = self.snapshot()
        with self._emit_lock:
            self._pending.append(snap)

    def _flush(self) -> None:
        """Deliver queued snapshots to observers.

        Must be called without the state lock: observers may read other
        sessions (a batch aggregating progress) or call back into this one.
        Only one thread delivers at a time; a snapshot queued meanwhile (for
        example by an observer calling cancel()) is delivered by that thread
        after the current one.
        """
        while True:
            with self._emit_lock:
                if self._emitting or not self._pending:
                    return
                self._emitting = True
                snap = self._pending.popleft()
                observers = list(self._observers)
            try:
                for callback in observers:
                    try:
                        callback(snap)
                    except Exception:
                        logger.exception("Progress observer failed for %s", self.file.name)
            finally:
                with self._emit_lock:
                    self._emitting = False

    # =========================================================================
    # Transitions
    # =========================================================================

    def _transition(
        self,
        status: UploadStatus,
        *,
        error: Optional[str] = None,
        result_path: Optional[str] = None,
    ) -> bool:
        """Move to ``status`` unless already terminal.

        Returns:
            False if the session had already ended.
        """
        with self._lock:
            changed = self._set_status(status, error=error, result_path=result_path)
        self._flush()
        return changed

    def _set_status(
        self,
        status: UploadStatus,
        *,
        error: Optional[str] = None,
        result_path: Optional[str] = None,
    ) -> bool:
        """Apply a transition and queue its snapshot; the caller holds the state lock."""
        if self._status.is_terminal:
            logger.debug(
                "Ignoring %s -> %s for %s", self._status.value, status.value, self.file.name
            )
            return False

        logger.debug("%s: %s -> %s", self.file.name, self._status.value, status.value)
        self._status = status
        if status == UploadStatus.ERROR:
            self._error = error
        if status == UploadStatus.COMPLETE:
            self._result_path = result_path

        if status.is_terminal:
            self.audit.log_upload(
                status.value,
                file_name=self.file.name,
                session_id=self._session_id,
                destination=self.destination,
                total_size=self.file.size,
                result_path=self._result_path,
                error=self._error,
            )
        self._queue_snapshot()
        return True

    def _fail(self, reason: str) -> None:
        self._transition(UploadStatus.ERROR, error=reason)

    def _begin(self, operation: str) -> None:
        with self._lock:
            if self._status != UploadStatus.IDLE:
                raise UploadStateError(operation, self._status.value)
            self._set_status(UploadStatus.INITIALIZING)
        self._flush()

    def _require_session_id(self, operation: str) -> str:
        session_id = self._session_id
        if session_id is None:
            raise UploadStateError(operation, self._status.value)
        return session_id

    def _attach_session(self, session_id: str) -> bool:
        """Record the remote session ID.

        Returns:
            False if the session was cancelled while the ID was being obtained.
        """
        with self._lock:
            self._session_id = session_id
            cancelled = self._status == UploadStatus.CANCELLED
            abort = self._abort_remote
        if cancelled and abort:
            # The cancel happened before we knew which remote session to abort
            self.transfer.cancel_session(session_id)
        return not cancelled

    def _acknowledge(self, index: int) -> None:
        with self._lock:
            if self._status.is_terminal:
                return
            self._acknowledged.add(index)
            self._queue_snapshot()
        self._flush()

    def adopt_remote_state(self, acknowledged: Iterable[int]) -> None:
        """Seed acknowledged chunks from an authoritative status query."""
        with self._lock:
            if self._status.is_terminal:
                return
            self._acknowledged = {i for i in acknowledged if 0 <= i < len(self.chunks)}

    def finish_from_remote(self, result_path: str) -> None:
        """Mark complete without sending anything (server already assembled the file)."""
        with self._lock:
            if self._status.is_terminal:
                return
            self._acknowledged = set(range(len(self.chunks)))
            self._set_status(UploadStatus.COMPLETE, result_path=result_path)
        self._flush()

    # =========================================================================
    # Remote Calls
    # =========================================================================

    def call(self, fn: Callable[..., T], *args: Any) -> T:
        """Run one transfer call on the session worker and wait for it.

        Raises:
            CancelledByUser: If the session is cancelled before or during the call.
        """
        self.token.raise_if_cancelled(self._session_id)
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix=f"upload-{self.file.name}"
            )
        def guarded() -> T:
            # Re-checked on the worker: a call queued just before cancel() never starts
            self.token.raise_if_cancelled(self._session_id)
            return fn(*args)

        future = self._executor.submit(guarded)
        return self.token.wait_for(future, self._session_id)

    def _shutdown(self) -> None:
        if self._executor is not None:
            # An abandoned request may still be running; don't wait for it
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    # =========================================================================
    # Operations
    # =========================================================================

    def start(self) -> Optional[str]:
        """Upload the file from scratch and block until a terminal state.

        Returns:
            Remote path on success, None on error or cancellation.

        Raises:
            ValidationError: If no destination is set (before any request).
            UploadStateError: If the session is not idle.
        """
        destination = validate_destination(self.destination)
        self._begin("start")

        def prepare() -> Optional[list[int]]:
            metadata = {
                "project_id": destination,
                "content_type": self.file.content_type,
                **self.metadata,
            }
            session_id = self.call(
                self.transfer.init_session,
                self.file.name,
                self.file.size,
                self.total_chunks,
                metadata,
            )
            if not self._attach_session(session_id):
                raise CancelledByUser(session_id)
            return [chunk.index for chunk in self.chunks]

        return self._run("upload", prepare)

    def resume(
        self,
        session_id: str,
        coordinator: Optional[ResumeCoordinator] = None,
    ) -> Optional[str]:
        """Continue an existing remote session, sending only missing chunks.

        Args:
            session_id: Session ID from an earlier init.
            coordinator: Resume coordinator (a default one is created if omitted).

        Returns:
            Remote path on success, None on error or cancellation.

        Raises:
            ValidationError: If session_id is blank.
            UploadStateError: If the session is not idle.
        """
        session_id = validate_session_id(session_id)
        coordinator = coordinator or ResumeCoordinator(self.transfer)
        self._begin("resume")
        self._attach_session(session_id)

        return self._run("resume", lambda: coordinator.prepare(self, session_id))

    def _run(self, operation: str, prepare: Callable[[], Optional[list[int]]]) -> Optional[str]:
        """Drive the session from initializing to a terminal state.

        ``prepare`` returns the chunk indices to send, or None when the session
        already reached a terminal state.
        """
        with LogContext(operation, logger, file=self.file.name, size=self.file.size) as ctx:
            try:
                indices = prepare()
                if indices is None:
                    return self._result_path
                ctx.bind(session_id=self._session_id)

                if not self._transition(UploadStatus.UPLOADING):
                    return None
                self._send_chunks(indices)
                self._complete()

            except CancelledByUser:
                ctx.info("cancelled")
                self._transition(UploadStatus.CANCELLED)
            except TransferError as e:
                ctx.warning("failed: %s", e.message)
                self._fail(e.message)
            except OSError as e:
                self._fail(f"Failed to read {self.file.path}: {e}")
            except Exception as e:
                logger.exception("Unexpected error uploading %s", self.file.name)
                self._fail(f"Unexpected error: {e}")
            finally:
                self._shutdown()

        return self._result_path

    def _send_chunks(self, indices: list[int]) -> None:
        """Send chunks one at a time in the given (ascending) order."""
        session_id = self._require_session_id("send chunks")

        for index in indices:
            # First checkpoint: before the chunk is read or sent
            self.token.raise_if_cancelled(session_id)
            if index in self._acknowledged:
                continue

            chunk = self.chunks[index]

            def send(chunk=chunk) -> Any:
                return self.transfer.send_chunk(session_id, chunk.index, self.file.read_chunk(chunk))

            self.call(send)
            self._acknowledge(index)

    def _complete(self) -> None:
        session_id = self._require_session_id("complete")

        self.token.raise_if_cancelled(session_id)
        missing = set(range(len(self.chunks))) - self.chunks_acknowledged
        if missing:
            self._fail(f"Cannot complete upload: {len(missing)} chunk(s) not acknowledged")
            return

        if not self._transition(UploadStatus.COMPLETING):
            return
        result_path = self.call(self.transfer.complete_session, session_id)
        self._transition(UploadStatus.COMPLETE, result_path=result_path)

    def cancel(self, *, abort_remote: Optional[bool] = None) -> bool:
        """Cancel the session.

        Takes effect immediately: the session is ``cancelled`` when this returns,
        even if a request is still in flight.

        Args:
            abort_remote: Also ask the server to drop the session
                (defaults to ``abort_remote_on_cancel``).

        Returns:
            True if the session was cancelled by this call.
        """
        with self._lock:
            if self._status.is_terminal:
                return False
            if abort_remote is not None:
                self._abort_remote = abort_remote
            abort = self._abort_remote
            session_id = self._session_id
            self.token.cancel()
            self._set_status(UploadStatus.CANCELLED)

        self._flush()
        if abort and session_id:
            self.transfer.cancel_session(session_id)
        return True
