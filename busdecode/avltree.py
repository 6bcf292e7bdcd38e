"""Self-balancing (AVL) binary search tree keyed by a user comparison function."""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Callable, Iterator, List, Optional, Tuple


class Visit(IntEnum):
    """Which visit of a node a walk callback is receiving."""

    PREORDER = 0
    POSTORDER = 1
    ENDORDER = 2
    LEAF = 3


class _Node:
    __slots__ = ("key", "child", "height")

    def __init__(self, key: Any) -> None:
        self.key = key
        self.child: List[Optional[_Node]] = [None, None]
        self.height = 1


def _height(node: Optional[_Node]) -> int:
    return node.height if node is not None else 0


def _rotate(x: _Node, direction: int) -> Tuple[_Node, int]:
    """Rotate so that the deeper side ``direction`` of ``x`` is rebalanced."""
    other = 1 - direction
    y = x.child[direction]
    z = y.child[other]
    hx = x.height
    hz = _height(z)
    if hz > _height(y.child[direction]):
        x.child[direction] = z.child[other]
        y.child[other] = z.child[direction]
        z.child[other] = x
        z.child[direction] = y
        x.height = hz
        y.height = hz
        z.height = hz + 1
    else:
        x.child[direction] = z
        y.child[other] = x
        x.height = hz + 1
        y.height = hz + 2
        z = y
    return z, z.height - hx


def _balance(node: _Node) -> Tuple[_Node, int]:
    """Balance a subtree; return its new root and the change in height."""
    h0 = _height(node.child[0])
    h1 = _height(node.child[1])
    if -1 <= h0 - h1 <= 1:
        old = node.height
        node.height = max(h0, h1) + 1
        return node, node.height - old
    return _rotate(node, 1 if h0 < h1 else 0)


_Slot = Tuple[Optional[_Node], int]


class AvlTree:
    """An ordered set of keys, ordered by ``compare(a, b)`` returning <0, 0 or >0."""

    def __init__(self, compare: Callable[[Any, Any], int]) -> None:
        self._compare = compare
        self._root: Optional[_Node] = None
        self._size = 0

    def _get(self, slot: _Slot) -> Optional[_Node]:
        parent, side = slot
        return self._root if parent is None else parent.child[side]

    def _set(self, slot: _Slot, node: Optional[_Node]) -> None:
        parent, side = slot
        if parent is None:
            self._root = node
        else:
            parent.child[side] = node

    def _rebalance(self, slots: List[_Slot]) -> None:
        while slots:
            slot = slots.pop()
            node, changed = _balance(self._get(slot))
            self._set(slot, node)
            if not changed:
                break

    def find(self, key: Any) -> Any:
        """Return the stored key equal to ``key``, or None."""
        node = self._root
        while node is not None:
            c = self._compare(key, node.key)
            if c == 0:
                return node.key
            node = node.child[1 if c > 0 else 0]
        return None

    def search(self, key: Any) -> Any:
        """Return the stored key equal to ``key``, inserting ``key`` if absent."""
        slots: List[_Slot] = [(None, 0)]
        node = self._root
        while node is not None:
            c = self._compare(key, node.key)
            if c == 0:
                return node.key
            side = 1 if c > 0 else 0
            slots.append((node, side))
            node = node.child[side]
        self._set(slots.pop(), _Node(key))
        self._size += 1
        self._rebalance(slots)
        return key

    def delete(self, key: Any) -> Any:
        """Remove the key equal to ``key`` and return it, or None if absent."""
        slots: List[_Slot] = [(None, 0)]
        node = self._root
        while True:
            if node is None:
                return None
            c = self._compare(key, node.key)
            if c == 0:
                break
            side = 1 if c > 0 else 0
            slots.append((node, side))
            node = node.child[side]
        removed = node.key
        if node.child[0] is not None:
            # Replace with the in-order predecessor and unlink that node instead.
            target = node
            slots.append((node, 0))
            node = node.child[0]
            while node.child[1] is not None:
                slots.append((node, 1))
                node = node.child[1]
            target.key = node.key
            child = node.child[0]
        else:
            child = node.child[1]
        self._set(slots.pop(), child)
        self._size -= 1
        self._rebalance(slots)
        return removed

    def walk(self, action: Callable[[Any, Visit, int], None]) -> None:
        """Call ``action(key, visit, depth)`` for every visit of a depth-first walk."""

        def visit(node: Optional[_Node], depth: int) -> None:
            if node is None:
                return
            if node.height == 1:
                action(node.key, Visit.LEAF, depth)
            else:
                action(node.key, Visit.PREORDER, depth)
                visit(node.child[0], depth + 1)
                action(node.key, Visit.POSTORDER, depth)
                visit(node.child[1], depth + 1)
                action(node.key, Visit.ENDORDER, depth)

        visit(self._root, 0)

    def destroy(self, free_key: Optional[Callable[[Any], None]] = None) -> None:
        """Empty the tree, passing each key to ``free_key`` in post-order."""

        def release(node: Optional[_Node]) -> None:
            if node is None:
                return
            release(node.child[0])
            release(node.child[1])
            if free_key is not None:
                free_key(node.key)

        release(self._root)
        self._root = None
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Any]:
        stack: List[_Node] = []
        node = self._root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.child[0]
            node = stack.pop()
            yield node.key
            node = node.child[1]