"""Chunk planning: split a byte count into fixed-size ranges."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Chunk:
    """Byte range ``[start, end)`` of a source file."""

    index: int
    start: int
    end: int

    @property
    def size(self) -> int:
        """Number of bytes in the chunk."""
        return self.end - self.start


def count_chunks(total_size: int, chunk_size: int) -> int:
    """Number of chunks needed for ``total_size`` bytes.

    Raises:
        ValueError: If chunk_size <= 0 or total_size < 0.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if total_size < 0:
        raise ValueError(f"total_size must be non-negative, got {total_size}")
    return -(-total_size // chunk_size)


def plan_chunks(total_size: int, chunk_size: int) -> list[Chunk]:
    """Compute the ordered chunks covering ``[0, total_size)``.

    Every chunk is ``chunk_size`` bytes except possibly the last. A zero-byte
    file has no chunks.

    Args:
        total_size: File size in bytes.
        chunk_size: Fixed chunk size in bytes.

    Returns:
        Chunks with indices 0..N-1 in ascending order.

    Raises:
        ValueError: If chunk_size <= 0 or total_size < 0.
    """
    count = count_chunks(total_size, chunk_size)
    return [
        Chunk(index=i, start=i * chunk_size, end=min((i + 1) * chunk_size, total_size))
        for i in range(count)
    ]


def acknowledged_bytes(chunks: list[Chunk], indices: set[int] | frozenset[int]) -> int:
    """Total bytes covered by the given chunk indices."""
    return sum(chunks[i].size for i in indices if 0 <= i < len(chunks))
