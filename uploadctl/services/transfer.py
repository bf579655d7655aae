"""Transfer client for the chunked upload API.

Each operation is a single request/response. Failures surface as the typed
transfer errors; nothing here retries.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from uploadctl.core.exceptions import (
    ChunkTransferError,
    CompletionError,
    ConnectionError,
    InitError,
    StatusQueryError,
    UploadCtlError,
)
from uploadctl.models.transfer import (
    ChunkResponse,
    CompleteResponse,
    InitResponse,
    StatusResponse,
)
from uploadctl.uploaders.constants import (
    UPLOAD_CHUNK_PATH,
    UPLOAD_COMPLETE_PATH,
    UPLOAD_INIT_PATH,
    UPLOAD_SESSION_PATH,
    UPLOAD_STATUS_PATH,
)

from .base import BaseService

logger = logging.getLogger(__name__)


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class ChunkReceipt:
    """Server acknowledgement for one chunk."""

    chunk_index: int
    chunks_received: int
    is_complete: bool


@dataclass(frozen=True)
class SessionStatus:
    """Server-side view of an upload session."""

    session_id: str
    total_chunks: int
    chunks_received: frozenset[int]
    is_complete: bool
    total_size: int
    file_name: Optional[str] = None
    result_path: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "session_id": self.session_id,
            "file_name": self.file_name,
            "total_size": self.total_size,
            "total_chunks": self.total_chunks,
            "chunks_received": sorted(self.chunks_received),
            "is_complete": self.is_complete,
            "result_path": self.result_path,
        }


def _status_code(exc: Exception) -> Optional[int]:
    return getattr(exc, "status_code", None)


def _reason(exc: Exception) -> str:
    if isinstance(exc, UploadCtlError):
        return exc.message
    return str(exc) or type(exc).__name__


# =============================================================================
# TransferService
# =============================================================================


class TransferService(BaseService):
    """Init/chunk/complete/status/cancel operations against the upload API.

    ``send_chunk`` is idempotent per ``(session_id, chunk_index)``: an index
    this service has already seen acknowledged is answered from the local
    record instead of being retransmitted. ``query_status`` replaces that
    record with the server's view.
    """

    def __init__(self, client: Any) -> None:
        super().__init__(client)
        self._lock = threading.Lock()
        self._acknowledged: dict[str, dict[int, ChunkReceipt]] = {}

    # =========================================================================
    # Session Operations
    # =========================================================================

    def init_session(
        self,
        file_name: str,
        total_size: int,
        total_chunks: int,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Create a remote upload session.

        Args:
            file_name: Remote file name.
            total_size: File size in bytes.
            total_chunks: Number of chunks that will be sent.
            metadata: Extra form fields (e.g. ``project_id``, ``content_type``).

        Returns:
            Session ID assigned by the server.

        Raises:
            InitError: If the server rejects the request or cannot be reached.
        """
        fields = {
            "filename": file_name,
            "total_size": str(total_size),
            "total_chunks": str(total_chunks),
        }
        for key, value in (metadata or {}).items():
            if value is not None:
                fields[key] = str(value)
        # (None, value) parts carry no filename, so httpx sends plain multipart fields
        form = {key: (None, value) for key, value in fields.items()}

        try:
            resp = InitResponse.model_validate(self._post(UPLOAD_INIT_PATH, files=form))
        except (ConnectionError, ValueError) as e:
            raise InitError(
                f"Failed to initialize upload for {file_name}: {_reason(e)}",
                status_code=_status_code(e),
            ) from e

        if resp.chunk_size:
            logger.debug("Server suggests chunk size %d for %s", resp.chunk_size, file_name)

        logger.debug("Initialized session %s for %s (%d chunks)", resp.upload_id, file_name, total_chunks)
        return resp.upload_id

    def send_chunk(self, session_id: str, chunk_index: int, data: bytes) -> ChunkReceipt:
        """Upload one chunk.

        Args:
            session_id: Remote session ID.
            chunk_index: Zero-based chunk index.
            data: Chunk bytes.

        Returns:
            Server acknowledgement.

        Raises:
            ChunkTransferError: On network failure or rejection.
        """
        with self._lock:
            cached = self._acknowledged.get(session_id, {}).get(chunk_index)
        if cached is not None:
            logger.debug("Chunk %d of %s already acknowledged, not resending", chunk_index, session_id)
            return cached

        path = self._build_path(UPLOAD_CHUNK_PATH, session_id=session_id)
        files = {"chunk": (f"chunk_{chunk_index}", data, "application/octet-stream")}

        try:
            resp = ChunkResponse.model_validate(
                self._post(path, data={"chunk_index": str(chunk_index)}, files=files)
            )
        except (ConnectionError, ValueError) as e:
            raise ChunkTransferError(
                f"Chunk {chunk_index} failed: {_reason(e)}",
                session_id=session_id,
                chunk_index=chunk_index,
                status_code=_status_code(e),
            ) from e

        receipt = ChunkReceipt(
            chunk_index=chunk_index,
            chunks_received=resp.chunks_received,
            is_complete=resp.is_complete,
        )
        with self._lock:
            self._acknowledged.setdefault(session_id, {})[chunk_index] = receipt
        return receipt

    def complete_session(self, session_id: str) -> str:
        """Finalize a session once every chunk is acknowledged.

        Returns:
            Remote storage path of the assembled file.

        Raises:
            CompletionError: If the server disagrees that all chunks arrived.
        """
        path = self._build_path(UPLOAD_COMPLETE_PATH, session_id=session_id)

        try:
            resp = CompleteResponse.model_validate(self._post(path, json={}))
        except (ConnectionError, ValueError) as e:
            raise CompletionError(
                f"Failed to complete upload: {_reason(e)}",
                session_id=session_id,
                status_code=_status_code(e),
            ) from e

        self.forget(session_id)
        return resp.file_path

    def query_status(self, session_id: str) -> SessionStatus:
        """Fetch the server's view of a session. Side-effect free remotely.

        Raises:
            StatusQueryError: If the status cannot be fetched.
        """
        path = self._build_path(UPLOAD_STATUS_PATH, session_id=session_id)

        try:
            resp = StatusResponse.model_validate(self._get(path))
        except (ConnectionError, ValueError) as e:
            raise StatusQueryError(
                f"Failed to query upload status: {_reason(e)}",
                session_id=session_id,
                status_code=_status_code(e),
            ) from e

        received = frozenset(resp.chunks_received)

        # The server is authoritative: drop local acks it does not report
        with self._lock:
            known = self._acknowledged.get(session_id)
            if known is not None:
                self._acknowledged[session_id] = {
                    i: r for i, r in known.items() if i in received
                }

        return SessionStatus(
            session_id=resp.upload_id or session_id,
            total_chunks=resp.total_chunks,
            chunks_received=received,
            is_complete=resp.is_complete,
            total_size=resp.total_size,
            file_name=resp.filename,
            result_path=resp.file_path,
        )

    def cancel_session(self, session_id: str) -> bool:
        """Ask the server to abort a session. Best effort, never raises.

        Returns:
            True if the server accepted the request.
        """
        self.forget(session_id)
        path = self._build_path(UPLOAD_SESSION_PATH, session_id=session_id)

        try:
            self._delete(path)
        except UploadCtlError as e:
            logger.warning("Failed to cancel upload %s on server: %s", session_id, e)
            return False
        return True

    def forget(self, session_id: str) -> None:
        """Drop locally recorded acknowledgements for a session."""
        with self._lock:
            self._acknowledged.pop(session_id, None)
