"""Sequential multi-file upload orchestration."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Optional

from uploadctl.core.exceptions import UploadCtlError, ValidationError
from uploadctl.models.progress import (
    BatchProgress,
    BatchResult,
    BatchStatus,
    FileOutcome,
    UploadProgress,
    UploadStatus,
    percent,
)
from uploadctl.uploaders.common import UploadFile
from uploadctl.uploaders.session import UploadSession

logger = logging.getLogger(__name__)

SessionFactory = Callable[[UploadFile], UploadSession]
BatchCallback = Callable[[BatchProgress], None]
FileCallback = Callable[[str, UploadProgress], None]


class BatchUploader:
    """Uploads files one after another; a failed file never stops the batch.

    A session is created for every file up front, so observers can watch (or
    cancel) files that have not started yet. File ``i+1`` starts only after
    file ``i`` reached a terminal state.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        progress_callback: Optional[BatchCallback] = None,
        file_progress_callback: Optional[FileCallback] = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            session_factory: Builds an idle UploadSession for a file.
            progress_callback: Observer for aggregate batch snapshots.
            file_progress_callback: Observer for per-file snapshots, called
                with the file key and the snapshot.
        """
        self.session_factory = session_factory
        self.progress_callback = progress_callback
        self.file_progress_callback = file_progress_callback

        self._lock = threading.RLock()
        self._sessions: dict[str, UploadSession] = {}
        self._order: list[str] = []
        self._current: Optional[str] = None
        self._status = BatchStatus.IDLE
        self._cancelled = False
        self._started = False

    # =========================================================================
    # State
    # =========================================================================

    @property
    def sessions(self) -> dict[str, UploadSession]:
        """File key (resolved path) -> session, in input order."""
        with self._lock:
            return {key: self._sessions[key] for key in self._order}

    def session_for(self, path: str) -> Optional[UploadSession]:
        """Look up the session for a file path."""
        with self._lock:
            return self._sessions.get(self._key_for(path))

    @staticmethod
    def _key_for(path: object) -> str:
        return str(Path(str(path)).expanduser().resolve())

    def snapshot(self) -> BatchProgress:
        """Current aggregate progress."""
        with self._lock:
            sessions = [(key, self._sessions[key]) for key in self._order]
            batch_status = self._status
            current = self._current

        # Sessions are read outside the batch lock; they call back into it while emitting
        counts = {UploadStatus.COMPLETE: 0, UploadStatus.ERROR: 0, UploadStatus.CANCELLED: 0}
        current_fraction = 0.0
        for key, session in sessions:
            snap = session.snapshot()
            if snap.status in counts:
                counts[snap.status] += 1
            elif key == current:
                current_fraction = snap.fraction

        total = len(sessions)
        # Failed and cancelled files count as nothing done
        done = counts[UploadStatus.COMPLETE] + current_fraction
        if total == 0:
            pct = 100 if batch_status == BatchStatus.COMPLETE else 0
        else:
            pct = percent(int(done * 1_000_000), total * 1_000_000)

        return BatchProgress(
            status=batch_status,
            total_files=total,
            completed_files=counts[UploadStatus.COMPLETE],
            failed_files=counts[UploadStatus.ERROR],
            cancelled_files=counts[UploadStatus.CANCELLED],
            current_file=current,
            percentage=pct,
        )

    def _emit(self) -> None:
        if self.progress_callback is None:
            return
        snap = self.snapshot()
        try:
            self.progress_callback(snap)
        except Exception:
            logger.exception("Batch progress observer failed")

    def _on_file_progress(self, key: str, snap: UploadProgress) -> None:
        if self.file_progress_callback is not None:
            try:
                self.file_progress_callback(key, snap)
            except Exception:
                logger.exception("File progress observer failed for %s", key)
        self._emit()

    # =========================================================================
    # Operations
    # =========================================================================

    def prepare(self, files: Sequence[UploadFile]) -> dict[str, UploadSession]:
        """Create idle sessions for ``files``.

        Called by :meth:`upload_all`; may be called earlier to subscribe to
        individual sessions before the batch starts.

        Raises:
            ValidationError: If a file appears twice.
        """
        with self._lock:
            if self._order:
                return self.sessions

            for file in files:
                key = self._key_for(file.path)
                if key in self._sessions:
                    raise ValidationError(f"File listed twice: {file.path}", field="files")
                session = self.session_factory(file)
                session.subscribe(lambda snap, key=key: self._on_file_progress(key, snap))
                self._sessions[key] = session
                self._order.append(key)

            return self.sessions

    def upload_all(self, files: Sequence[UploadFile]) -> BatchResult:
        """Upload ``files`` sequentially.

        Returns:
            Per-file outcomes; ``result_paths`` lists successes in input order.
        """
        self.prepare(files)
        start = time.time()
        outcomes: list[FileOutcome] = []

        with self._lock:
            self._started = True
            if not self._cancelled:
                self._status = BatchStatus.UPLOADING
        self._emit()

        for key in list(self._order):
            session = self._sessions[key]

            with self._lock:
                stopped = self._cancelled
                self._current = None if stopped or session.is_terminal else key

            if stopped:
                session.cancel()
            elif not session.is_terminal:
                logger.info("Uploading %s", session.file_name)
                try:
                    session.start()
                except UploadCtlError as e:
                    # Cancelled between the check and start(): keep the session's own outcome
                    if not session.is_terminal:
                        # Local validation failed before any request for this file
                        logger.warning("Skipping %s: %s", session.file_name, e)
                        outcomes.append(
                            FileOutcome(file_path=key, status=UploadStatus.ERROR, error=str(e))
                        )
                        continue

            outcomes.append(
                FileOutcome(
                    file_path=key,
                    status=session.status,
                    session_id=session.session_id,
                    result_path=session.result_path,
                    error=session.error,
                )
            )

        with self._lock:
            self._current = None
            self._status = BatchStatus.CANCELLED if self._cancelled else BatchStatus.COMPLETE
        self._emit()

        result = BatchResult(outcomes=outcomes, duration=time.time() - start)
        if result.failed or result.cancelled:
            logger.warning(
                "Batch finished: %d succeeded, %d failed, %d cancelled",
                result.succeeded,
                result.failed,
                result.cancelled,
            )
        return result

    def cancel(self, *, abort_remote: Optional[bool] = None) -> None:
        """Stop the batch: cancel the running file and every file not yet started."""
        with self._lock:
            self._cancelled = True
            sessions = [self._sessions[key] for key in self._order]
            if self._started:
                self._status = BatchStatus.CANCELLED

        for session in sessions:
            session.cancel(abort_remote=abort_remote)

    def cancel_file(self, path: str, *, abort_remote: Optional[bool] = None) -> bool:
        """Cancel one file; the batch moves on to the next.

        Returns:
            True if the file's session was cancelled by this call.
        """
        session = self.session_for(path)
        if session is None:
            return False
        return session.cancel(abort_remote=abort_remote)
