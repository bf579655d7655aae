"""Common utilities for the upload core: local file access and discovery."""

from __future__ import annotations

import logging
import mimetypes
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from uploadctl.core.validation import validate_path_exists
from uploadctl.uploaders.constants import FALLBACK_CONTENT_TYPE
from uploadctl.uploaders.planner import Chunk

logger = logging.getLogger(__name__)


# =============================================================================
# UploadFile
# =============================================================================


@dataclass(frozen=True)
class UploadFile:
    """A local file to upload.

    The size is captured once at construction; chunk plans are computed from it.
    """

    path: Path
    name: str
    size: int

    @classmethod
    def from_path(cls, path: str | Path, name: str | None = None) -> UploadFile:
        """Create from a filesystem path.

        Args:
            path: Local file.
            name: Remote file name (defaults to the basename).

        Raises:
            PathValidationError: If the path is missing or not a file.
        """
        resolved = validate_path_exists(path, must_be_file=True)
        return cls(path=resolved, name=name or resolved.name, size=resolved.stat().st_size)

    @property
    def content_type(self) -> str:
        """Guessed MIME type."""
        guessed, _ = mimetypes.guess_type(self.name)
        return guessed or FALLBACK_CONTENT_TYPE

    def read_chunk(self, chunk: Chunk) -> bytes:
        """Read exactly the bytes of ``chunk``.

        Raises:
            OSError: If the file shrank or cannot be read.
        """
        with self.path.open("rb") as f:
            f.seek(chunk.start)
            data = f.read(chunk.size)
        if len(data) != chunk.size:
            raise OSError(
                f"Short read from {self.path}: chunk {chunk.index} expected "
                f"{chunk.size} bytes, got {len(data)}"
            )
        return data


# =============================================================================
# File Discovery
# =============================================================================


def collect_files(root: Path) -> list[Path]:
    """Recursively collect regular files under a directory.

    Hidden files and broken symlinks are skipped.

    Returns:
        Sorted list of file paths.

    Raises:
        ValueError: If root is not a directory.
    """
    if not root.exists() or not root.is_dir():
        raise ValueError(f"Not a directory: {root}")

    files: list[Path] = []
    for path in root.rglob("*"):
        if not path.is_file():
            continue

        if any(part.startswith(".") for part in path.relative_to(root).parts):
            continue

        if path.is_symlink():
            try:
                if not path.resolve().exists():
                    continue
            except (OSError, RuntimeError):
                continue

        files.append(path)

    return sorted(files)


def expand_upload_paths(paths: Iterable[str | Path]) -> list[Path]:
    """Expand a mix of files and directories into an ordered file list.

    Directories contribute their files in sorted order; duplicates keep their
    first position.
    """
    seen: set[Path] = set()
    expanded: list[Path] = []

    for raw in paths:
        path = Path(raw).expanduser()
        candidates = collect_files(path) if path.is_dir() else [path]
        for candidate in candidates:
            key = candidate.resolve()
            if key in seen:
                logger.debug("Skipping duplicate path %s", candidate)
                continue
            seen.add(key)
            expanded.append(candidate)

    return expanded
