"""Resume coordination for interrupted uploads.

Reconciles a local file with the server's record of an existing session and
works out which chunks still have to be sent.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from uploadctl.core.exceptions import StatusQueryError
from uploadctl.uploaders.planner import count_chunks

if TYPE_CHECKING:
    from uploadctl.services.transfer import SessionStatus, TransferService
    from uploadctl.uploaders.common import UploadFile
    from uploadctl.uploaders.session import UploadSession

logger = logging.getLogger(__name__)


def missing_chunks(total_chunks: int, received: Iterable[int]) -> list[int]:
    """Indices in ``0..total_chunks-1`` not yet received, ascending.

    Out-of-range indices in ``received`` are ignored.
    """
    have = set(received)
    return [i for i in range(total_chunks) if i not in have]


@dataclass(frozen=True)
class ResumePlan:
    """What a resumed session has to do."""

    session_id: str
    total_chunks: int
    acknowledged: frozenset[int]
    missing: tuple[int, ...]
    is_complete: bool = False
    result_path: Optional[str] = None


class ResumeCoordinator:
    """Builds resume plans from ``query_status`` and feeds them to a session."""

    def __init__(self, transfer: "TransferService") -> None:
        self.transfer = transfer

    def plan(self, status: "SessionStatus", file: "UploadFile", chunk_size: int) -> ResumePlan:
        """Turn a status response into a resume plan for ``file``.

        Raises:
            StatusQueryError: If the remote session does not describe this file
                at this chunk size, or claims completion without a path.
        """
        if status.total_size != file.size:
            raise StatusQueryError(
                f"Remote session is for {status.total_size} bytes but "
                f"{file.name} has {file.size}",
                session_id=status.session_id,
            )

        expected = count_chunks(file.size, chunk_size)
        if status.total_chunks != expected:
            raise StatusQueryError(
                f"Remote session expects {status.total_chunks} chunks; "
                f"chunk size {chunk_size} gives {expected}",
                session_id=status.session_id,
            )

        if status.is_complete:
            if not status.result_path:
                raise StatusQueryError(
                    "Remote session is complete but reported no file path",
                    session_id=status.session_id,
                )
            return ResumePlan(
                session_id=status.session_id,
                total_chunks=status.total_chunks,
                acknowledged=frozenset(range(status.total_chunks)),
                missing=(),
                is_complete=True,
                result_path=status.result_path,
            )

        acknowledged = frozenset(i for i in status.chunks_received if 0 <= i < status.total_chunks)
        ignored = len(status.chunks_received) - len(acknowledged)
        if ignored:
            logger.warning(
                "Ignoring %d out-of-range chunk indices reported for %s",
                ignored,
                status.session_id,
            )

        return ResumePlan(
            session_id=status.session_id,
            total_chunks=status.total_chunks,
            acknowledged=acknowledged,
            missing=tuple(missing_chunks(status.total_chunks, acknowledged)),
        )

    def prepare(self, session: "UploadSession", session_id: str) -> Optional[list[int]]:
        """Query the server and load the result into ``session``.

        Runs while the session is initializing. A session the server already
        finished is completed directly.

        Returns:
            Indices to send, ascending, or None if the session is now complete.
        """
        status = session.call(self.transfer.query_status, session_id)
        plan = self.plan(status, session.file, session.chunk_size)

        if plan.is_complete:
            logger.info("Session %s already complete on server", session_id)
            session.finish_from_remote(plan.result_path or "")
            return None

        logger.info(
            "Resuming %s: %d of %d chunks on server, %d to send",
            session_id,
            len(plan.acknowledged),
            plan.total_chunks,
            len(plan.missing),
        )
        session.adopt_remote_state(plan.acknowledged)
        return list(plan.missing)
