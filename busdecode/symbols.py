"""Address to symbol-name table, with import of Swift-style symbol dumps."""

from __future__ import annotations

import logging
import os
from enum import Enum, auto
from typing import Iterator, List, Optional, Tuple, Union

log = logging.getLogger(__name__)

_MAX_NAME = 80
_WHITESPACE = frozenset(" \t\r\n\0")


class _State(Enum):
    GROUND = auto()
    GOT_SQUARE = auto()
    GOT_CURLY = auto()
    IN_NAME = auto()
    TOO_LONG = auto()
    NAME_END = auto()
    IN_VALUE = auto()
    AWAIT_COMMA = auto()


def _parse_swift(text: str) -> Iterator[Tuple[str, int]]:
    """Yield (name, address) pairs from a ``[{'name':1234L,...}]`` dump."""
    state = _State.GROUND
    name: List[str] = []
    addr = 0
    for ch in text:
        if state is _State.GROUND:
            if ch == "[":
                state = _State.GOT_SQUARE
        elif state is _State.GOT_SQUARE:
            if ch == "{":
                state = _State.GOT_CURLY
            elif ch != "[":
                state = _State.GROUND
        elif state is _State.GOT_CURLY:
            if ch == "'":
                name = []
                state = _State.IN_NAME
            elif ch not in _WHITESPACE:
                state = _State.GROUND
        elif state is _State.IN_NAME:
            if ch == "'":
                state = _State.NAME_END
            elif len(name) >= _MAX_NAME:
                log.warning("swift import name too long")
                state = _State.TOO_LONG
            else:
                name.append(ch)
        elif state is _State.TOO_LONG:
            if ch == "'":
                state = _State.NAME_END
        elif state is _State.NAME_END:
            if ch == ":":
                addr = 0
                state = _State.IN_VALUE
            elif ch not in _WHITESPACE:
                state = _State.GROUND
        elif state is _State.IN_VALUE:
            if "0" <= ch <= "9":
                addr = (addr * 10 + ord(ch) - ord("0")) & 0xFFFFFFFF
            elif ch == "L":
                yield "".join(name), addr
                state = _State.AWAIT_COMMA
            elif ch == ",":
                yield "".join(name), addr
                state = _State.GOT_CURLY
            else:
                state = _State.GROUND
        elif state is _State.AWAIT_COMMA:
            if ch == ",":
                state = _State.GOT_CURLY
            elif ch not in _WHITESPACE:
                state = _State.GROUND


class SymbolTable:
    """A fixed-size table mapping addresses 0..size-1 to symbol names."""

    def __init__(self, size: int) -> None:
        if size < 0:
            raise ValueError(f"symbol table size must not be negative: {size}")
        self._names: List[Optional[str]] = [None] * size

    def add(self, name: str, address: int) -> None:
        """Name ``address``; raise ValueError if it is outside the table."""
        if not 0 <= address < len(self._names):
            raise ValueError(f"symbol {name}:{address:04x} out of range")
        self._names[address] = name

    def lookup(self, address: int) -> Optional[str]:
        """Return the name at ``address``, or None."""
        if 0 <= address < len(self._names):
            return self._names[address]
        return None

    def import_swift(self, path: Union[str, os.PathLike]) -> int:
        """Add the symbols from a Swift symbol dump; return how many were added."""
        with open(path, "rb") as fh:
            text = fh.read().decode("latin-1")
        count = 0
        for name, address in _parse_swift(text):
            self.add(name, address)
            count += 1
        return count