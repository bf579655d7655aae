"""Local ledger of interrupted upload sessions.

Remembers which remote session belongs to which local file so an interrupted
upload can be resumed without the caller keeping track of session IDs.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from uploadctl.core.config import CONFIG_DIR

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

LEDGER_FILE = CONFIG_DIR / "sessions.json"


# =============================================================================
# Ledger Entry
# =============================================================================


@dataclass
class LedgerEntry:
    """A remote session that has not completed yet."""

    session_id: str
    file_path: str
    total_size: int
    url: str
    destination: str | None
    created_at: datetime
    chunk_size: int | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "session_id": self.session_id,
            "file_path": self.file_path,
            "total_size": self.total_size,
            "url": self.url,
            "destination": self.destination,
            "created_at": self.created_at.isoformat(),
            "chunk_size": self.chunk_size,
        }

    @classmethod
    def from_dict(cls, data: dict) -> LedgerEntry:
        """Create from dictionary."""
        return cls(
            session_id=data["session_id"],
            file_path=data["file_path"],
            total_size=int(data["total_size"]),
            url=data["url"],
            destination=data.get("destination"),
            created_at=datetime.fromisoformat(data["created_at"]),
            chunk_size=data.get("chunk_size"),
        )


# =============================================================================
# SessionLedger
# =============================================================================


class SessionLedger:
    """Persists file -> session ID records for resumable uploads."""

    def __init__(self, ledger_file: Path | None = None):
        """Initialize ledger.

        Args:
            ledger_file: Path to the ledger file.
        """
        self.ledger_file = ledger_file or LEDGER_FILE

    @staticmethod
    def _key(file_path: str | Path) -> str:
        return str(Path(file_path).expanduser().resolve())

    def _read(self) -> dict[str, LedgerEntry]:
        if not self.ledger_file.exists():
            return {}

        try:
            with open(self.ledger_file) as f:
                raw = json.load(f)
            return {key: LedgerEntry.from_dict(value) for key, value in raw.items()}
        except (json.JSONDecodeError, KeyError, ValueError, TypeError, AttributeError):
            logger.warning("Ignoring unreadable session ledger: %s", self.ledger_file)
            return {}

    def _write(self, entries: dict[str, LedgerEntry]) -> None:
        self.ledger_file.parent.mkdir(parents=True, exist_ok=True)

        with open(self.ledger_file, "w") as f:
            json.dump({key: e.to_dict() for key, e in entries.items()}, f, indent=2)

        # Owner read/write only
        try:
            os.chmod(self.ledger_file, 0o600)
        except OSError:
            logger.debug("Could not restrict permissions on %s", self.ledger_file)

    # =========================================================================
    # Public API
    # =========================================================================

    def record(
        self,
        file_path: str | Path,
        session_id: str,
        *,
        total_size: int,
        url: str,
        destination: str | None = None,
        chunk_size: int | None = None,
    ) -> LedgerEntry:
        """Record (or replace) the session for a file.

        Returns:
            Stored entry.
        """
        key = self._key(file_path)
        entry = LedgerEntry(
            session_id=session_id,
            file_path=key,
            total_size=total_size,
            url=url,
            destination=destination,
            created_at=datetime.now(),
            chunk_size=chunk_size,
        )
        entries = self._read()
        entries[key] = entry
        self._write(entries)
        return entry

    def get(self, file_path: str | Path, url: str | None = None) -> LedgerEntry | None:
        """Look up the session recorded for a file.

        Args:
            file_path: Local file.
            url: If given, only return an entry for this server.
        """
        entry = self._read().get(self._key(file_path))
        if entry is None or (url and entry.url != url):
            return None
        return entry

    def find_by_session(self, session_id: str) -> LedgerEntry | None:
        """Look up an entry by remote session ID."""
        for entry in self._read().values():
            if entry.session_id == session_id:
                return entry
        return None

    def remove(self, file_path: str | Path) -> bool:
        """Drop the entry for a file.

        Returns:
            True if an entry was removed.
        """
        entries = self._read()
        if entries.pop(self._key(file_path), None) is None:
            return False
        self._write(entries)
        return True

    def remove_session(self, session_id: str) -> bool:
        """Drop every entry pointing at a session ID."""
        entries = self._read()
        kept = {k: e for k, e in entries.items() if e.session_id != session_id}
        if len(kept) == len(entries):
            return False
        self._write(kept)
        return True

    def entries(self) -> list[LedgerEntry]:
        """All recorded entries, oldest first."""
        return sorted(self._read().values(), key=lambda e: e.created_at)
