"""Fixed-size chunking for Studio transfers.

This module provides:
- CHUNK_SIZE: Size of every chunk PUT to an upload token
- Chunk: A slice of file content with its position
- split_chunks: Split content into ordered chunks
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

# The remote appends chunks in arrival order, so boundaries are fixed-size
CHUNK_SIZE = 4_000_000


@dataclass
class Chunk:
    """Represents a chunk of data with its position in the file."""

    index: int
    offset: int
    data: bytes

    @property
    def size(self) -> int:
        """Return the size of this chunk in bytes."""
        return len(self.data)


def split_chunks(data: bytes, chunk_size: int = CHUNK_SIZE) -> Iterator[Chunk]:
    """Split data into fixed-size chunks.

    Data at or below chunk_size yields exactly one chunk. Empty data
    yields nothing.

    Args:
        data: Raw bytes to split.
        chunk_size: Maximum size of each chunk.

    Yields:
        Chunk objects in increasing offset order.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    for index, offset in enumerate(range(0, len(data), chunk_size)):
        yield Chunk(index=index, offset=offset, data=data[offset : offset + chunk_size])


def count_chunks(size: int, chunk_size: int = CHUNK_SIZE) -> int:
    """Return how many chunks a payload of the given size splits into."""
    if size <= 0:
        return 0
    return (size + chunk_size - 1) // chunk_size
