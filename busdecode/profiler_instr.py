"""Per-instruction profiler: cycles and instruction counts by address or bucket."""

from __future__ import annotations

import re
from typing import Dict, List, Mapping, Optional, TextIO

from .defs import CpuEmulator
from .profiler import OTHER_CONTEXT, AddressCount, Profiler, output_helper
from .symbols import SymbolTable

_HEX = re.compile(r"\s*([+-]?)(?:0[xX](?=[0-9a-fA-F]))?([0-9a-fA-F]*)")


def _parse_hex(text: str) -> int:
    """Parse a leading hexadecimal number the lenient way; 0 if there is none."""
    match = _HEX.match(text)
    digits = match.group(2)
    if not digits:
        return 0
    value = int(digits, 16)
    return -value if match.group(1) == "-" else value


def _hex_fields(arg: Optional[str]) -> List[int]:
    """Split a comma separated argument into hex numbers, skipping empty fields."""
    return [_parse_hex(token) for token in (arg or "").split(",") if token]


def _dense_counts(counts: Mapping[int, AddressCount]) -> List[AddressCount]:
    """Expand sparse counts into a list indexed 0..OTHER_CONTEXT."""
    empty = AddressCount()
    return [counts.get(addr, empty) for addr in range(OTHER_CONTEXT + 1)]


class InstrProfiler(Profiler):
    """Counts cycles and instructions per address, optionally grouped in buckets.

    The argument is ``min,max,bucket`` in hex; instructions outside
    ``min..max`` are counted together in the "other" slot.
    """

    name = "instr"

    def __init__(self, arg: Optional[str] = None, symbols: Optional[SymbolTable] = None) -> None:
        super().__init__(arg, symbols)
        self.profile_min = 0x0000
        self.profile_max = 0xFFFF
        self.profile_bucket = 1
        fields = _hex_fields(arg)
        if len(fields) > 0:
            self.profile_min = fields[0]
        if len(fields) > 1:
            self.profile_max = fields[1]
        if len(fields) > 2:
            self.profile_bucket = fields[2]
        self._counts: Dict[int, AddressCount] = {}
        self.init(None)

    def init(self, em: Optional[CpuEmulator] = None) -> None:
        self._counts = {}
        self.em = em

    def profile_instruction(self, pc: int, opcode: int, op1: int, op2: int, num_cycles: int) -> None:
        bucket = OTHER_CONTEXT
        if self.profile_min <= pc <= self.profile_max:
            if self.profile_bucket < 2:
                bucket = pc & 0xFFFF
            else:
                bucket = ((pc & 0xFFFF) // self.profile_bucket) * self.profile_bucket
        entry = self._counts.setdefault(bucket, AddressCount())
        entry.instructions += 1
        entry.cycles += num_cycles

    def done(self, out: Optional[TextIO] = None) -> None:
        output_helper(_dense_counts(self._counts), True, False, self.em, self.symbols, out)