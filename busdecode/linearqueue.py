"""Double-ended queue storing its items in fixed-size chunks."""

from __future__ import annotations

from collections import deque
from typing import Deque, Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class LinearQueue(Generic[T]):
    """A queue with a tail (first) end and a head (last) end.

    Items live in chunks of ``chunk_size`` slots. Up to ``keep_old``
    emptied chunks are kept for reuse. Iteration runs tail to head.
    """

    def __init__(self, chunk_size: int, keep_old: int = 4) -> None:
        self.chunk_size = max(1, chunk_size)
        self.keep_old = max(0, keep_old)
        self._chunks: Deque[List[Optional[T]]] = deque()
        self._old: Deque[List[Optional[T]]] = deque()
        self._size = 0
        # Index of the tail item in the first chunk; 0 means a push at the
        # tail needs a new chunk.
        self._first = 0
        # Index of the head item in the last chunk; chunk_size-1 means a push
        # at the head needs a new chunk.
        self._last = self.chunk_size - 1

    def _new_chunk(self) -> List[Optional[T]]:
        if self._old:
            return self._old.pop()
        return [None] * self.chunk_size

    def _retire(self, chunk: List[Optional[T]]) -> None:
        if not self.keep_old and not self._old:
            return
        chunk[:] = [None] * self.chunk_size
        self._old.append(chunk)
        while len(self._old) > self.keep_old:
            self._old.popleft()

    def _drop_tail(self) -> None:
        self._chunks[0][self._first] = None
        self._size -= 1
        if not self._size:
            self._last = self.chunk_size - 1
            self._retire(self._chunks.popleft())
            self._first = 0
            return
        self._first += 1
        if self._first == self.chunk_size:
            self._retire(self._chunks.popleft())
            self._first = 0

    def _drop_head(self) -> None:
        self._chunks[-1][self._last] = None
        self._size -= 1
        if not self._size:
            self._first = 0
            self._retire(self._chunks.pop())
            self._last = self.chunk_size - 1
            return
        if self._last == 0:
            self._retire(self._chunks.pop())
            self._last = self.chunk_size - 1
        else:
            self._last -= 1

    def __len__(self) -> int:
        return self._size

    def _slices(self) -> Iterator[List[Optional[T]]]:
        count = len(self._chunks)
        for position, chunk in enumerate(self._chunks):
            start = self._first if position == 0 else 0
            stop = self._last + 1 if position == count - 1 else self.chunk_size
            yield chunk[start:stop]

    def __iter__(self) -> Iterator[T]:
        for part in list(self._slices()):
            yield from part

    def __reversed__(self) -> Iterator[T]:
        for part in reversed(list(self._slices())):
            yield from reversed(part)

    def is_empty(self) -> bool:
        return not self._chunks

    def clear(self, free_cached_chunks: bool = False) -> None:
        """Remove every item; optionally drop the cached spare chunks too."""
        while self._size:
            self._drop_tail()
        if free_cached_chunks:
            self._old.clear()

    def head(self) -> Optional[T]:
        """Return the item at the head (last) end, or None if empty."""
        return self._chunks[-1][self._last] if self._chunks else None

    def tail(self) -> Optional[T]:
        """Return the item at the tail (first) end, or None if empty."""
        return self._chunks[0][self._first] if self._chunks else None

    def push_tail(self, item: T) -> None:
        """Add ``item`` at the tail (first) end."""
        if self._first == 0:
            self._chunks.appendleft(self._new_chunk())
            self._first = self.chunk_size - 1
        else:
            self._first -= 1
        self._chunks[0][self._first] = item
        self._size += 1

    def push_head(self, item: T) -> None:
        """Add ``item`` at the head (last) end."""
        self._last += 1
        if self._last == self.chunk_size:
            self._chunks.append(self._new_chunk())
            self._last = 0
        self._chunks[-1][self._last] = item
        self._size += 1

    def pop_tail(self) -> T:
        """Remove and return the tail item; raise IndexError if empty."""
        if self.is_empty():
            raise IndexError("pop from an empty queue")
        item = self._chunks[0][self._first]
        self._drop_tail()
        return item

    def pop_head(self) -> T:
        """Remove and return the head item; raise IndexError if empty."""
        if self.is_empty():
            raise IndexError("pop from an empty queue")
        item = self._chunks[-1][self._last]
        self._drop_head()
        return item