"""Intrusive doubly linked list: nodes carry their own prev/next links."""

from __future__ import annotations

from typing import Generic, Iterator, Optional, TypeVar

N = TypeVar("N", bound="LinkedListNode")


class LinkedListNode:
    """Base class for objects kept in a :class:`LinkedList`."""

    __slots__ = ("prev", "next")

    def __init__(self) -> None:
        self.prev: Optional[LinkedListNode] = None
        self.next: Optional[LinkedListNode] = None


class LinkedList(Generic[N]):
    """A doubly linked list of :class:`LinkedListNode` objects.

    A node may belong to at most one list at a time; the list does not
    check this. The list is not thread safe.
    """

    def __init__(self) -> None:
        self._first: Optional[N] = None
        self._last: Optional[N] = None

    def first(self) -> Optional[N]:
        """Return the first node, or None if the list is empty."""
        return self._first

    def last(self) -> Optional[N]:
        """Return the last node, or None if the list is empty."""
        return self._last

    def is_empty(self) -> bool:
        return self._first is None

    def insert(self, node: Optional[N]) -> None:
        """Put ``node`` at the beginning of the list."""
        if node is None:
            return
        node.next = self._first
        node.prev = None
        if self._first is not None:
            self._first.prev = node
        else:
            self._last = node
        self._first = node

    def append(self, node: Optional[N]) -> None:
        """Put ``node`` at the end of the list."""
        if node is None:
            return
        node.prev = self._last
        node.next = None
        if self._last is not None:
            self._last.next = node
        else:
            self._first = node
        self._last = node

    def replace(self, new: N, old: N) -> N:
        """Put ``new`` where ``old`` was and return the unlinked ``old``."""
        new.prev = old.prev
        new.next = old.next
        if new.prev is not None:
            new.prev.next = new
        if new.next is not None:
            new.next.prev = new
        if self._first is old:
            self._first = new
        if self._last is old:
            self._last = new
        old.prev = old.next = None
        return old

    def queue_before(self, node: Optional[N], where: N) -> None:
        """Link ``node`` directly before ``where``, which must be in the list."""
        if node is None:
            return
        if where is self._first:
            self.insert(node)
            return
        node.prev = where.prev
        where.prev.next = node
        where.prev = node
        node.next = where

    def queue_after(self, node: Optional[N], where: N) -> None:
        """Link ``node`` directly after ``where``, which must be in the list."""
        if node is None:
            return
        if where is self._last:
            self.append(node)
            return
        node.next = where.next
        where.next.prev = node
        where.next = node
        node.prev = where

    def queue(self, node: Optional[N], where: N, loc: int) -> None:
        """Queue before ``where`` if ``loc`` < 0, after it if ``loc`` > 0, else do nothing."""
        if loc < 0:
            self.queue_before(node, where)
        elif loc > 0:
            self.queue_after(node, where)

    def dequeue(self, node: Optional[N]) -> Optional[N]:
        """Unlink ``node`` from the list and return it."""
        if node is None:
            return None
        if node is self._first:
            self._first = node.next
        else:
            node.prev.next = node.next
        if node is self._last:
            self._last = node.prev
        else:
            node.next.prev = node.prev
        node.next = node.prev = None
        return node

    def pop_first(self) -> Optional[N]:
        """Unlink and return the first node, or None if the list is empty."""
        node = self._first
        if node is None:
            return None
        self._first = node.next
        if self._first is not None:
            self._first.prev = None
        else:
            self._last = None
        node.next = None
        return node

    def pop_last(self) -> Optional[N]:
        """Unlink and return the last node, or None if the list is empty."""
        node = self._last
        if node is None:
            return None
        self._last = node.prev
        if self._last is not None:
            self._last.next = None
        else:
            self._first = None
        node.prev = None
        return node

    def swap(self, other: "LinkedList[N]") -> None:
        """Exchange the contents of this list and ``other``."""
        self._first, other._first = other._first, self._first
        self._last, other._last = other._last, self._last

    def extend_from(self, other: "LinkedList[N]") -> None:
        """Move every node of ``other`` to the end of this list in O(1)."""
        if other.is_empty():
            return
        other._first.prev = self._last
        if self._last is not None:
            self._last.next = other._first
        else:
            self._first = other._first
        self._last = other._last
        other._first = other._last = None

    def clear(self) -> None:
        """Unlink every node."""
        while self.pop_first() is not None:
            pass

    def __contains__(self, node: object) -> bool:
        return any(item is node for item in self)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __iter__(self) -> Iterator[N]:
        node = self._first
        while node is not None:
            following = node.next
            yield node
            node = following

    def __reversed__(self) -> Iterator[N]:
        node = self._last
        while node is not None:
            preceding = node.prev
            yield node
            node = preceding