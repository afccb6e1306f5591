"""Bounded, append-only buffers for captured entries.

Each capture category owns one BoundedBuffer. Appending beyond the maximum
length evicts the oldest entries first, so the buffer always holds the most
recent activity in insertion order.
"""

from collections import deque
from typing import Deque, Generic, Iterator, List, TypeVar

T = TypeVar("T")


class BoundedBuffer(Generic[T]):
    """FIFO-evicting buffer with a fixed maximum length."""

    def __init__(self, max_size: int):
        """Initialize buffer.

        Args:
            max_size: Maximum number of entries retained (must be positive)
        """
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self._entries: Deque[T] = deque(maxlen=max_size)

    @property
    def max_size(self) -> int:
        return self._entries.maxlen

    def append(self, entry: T) -> None:
        """Append an entry, dropping the oldest ones beyond max_size."""
        self._entries.append(entry)

    def snapshot(self) -> List[T]:
        """Return an independent copy of the current entries."""
        return list(self._entries)

    def clear(self) -> None:
        """Remove all entries in place."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[T]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"BoundedBuffer(size={len(self._entries)}, max_size={self.max_size})"
