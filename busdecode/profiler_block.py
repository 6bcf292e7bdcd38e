"""Basic-block profiler: finds block starts from jumps and branches."""

from __future__ import annotations

from typing import Dict, Optional, TextIO

from .defs import CpuEmulator
from .profiler import OTHER_CONTEXT, AddressCount, Flag, Profiler, output_helper
from .profiler_instr import _dense_counts, _hex_fields
from .symbols import SymbolTable


def _signed_byte(value: int) -> int:
    value &= 0xFF
    return value - 0x100 if value & 0x80 else value


class BlockProfiler(Profiler):
    """Counts cycles per basic block; blocks start at jump and branch targets.

    The argument is ``min,max`` in hex.
    """

    name = "block"

    def __init__(self, arg: Optional[str] = None, symbols: Optional[SymbolTable] = None) -> None:
        super().__init__(arg, symbols)
        self.profile_min = 0x0000
        self.profile_max = 0xFFFF
        fields = _hex_fields(arg)
        if len(fields) > 0:
            self.profile_min = fields[0]
        if len(fields) > 1:
            self.profile_max = fields[1]
        self._counts: Dict[int, AddressCount] = {}
        self._last_opcode = 0
        self.init(None)

    def init(self, em: Optional[CpuEmulator] = None) -> None:
        self._counts = {OTHER_CONTEXT: AddressCount(flags=Flag.IMP)}
        self.em = em

    def _entry(self, addr: int) -> AddressCount:
        return self._counts.setdefault(addr, AddressCount())

    def profile_instruction(self, pc: int, opcode: int, op1: int, op2: int, num_cycles: int) -> None:
        if self.profile_min <= pc <= self.profile_max:
            addr = pc & 0xFFFF
        else:
            addr = OTHER_CONTEXT
        entry = self._entry(addr)
        entry.instructions += 1
        entry.cycles += num_cycles
        # The instruction after an indirect JMP is its destination.
        if self._last_opcode == 0x6C:
            entry.flags |= Flag.JMP_IND
        elif self._last_opcode == 0x7C:
            entry.flags |= Flag.JMP_INDX
        if opcode == 0x20:
            self._entry((op2 << 8 | op1) & 0xFFFF).flags |= Flag.JSR
        elif opcode == 0x4C:
            self._entry((op2 << 8 | op1) & 0xFFFF).flags |= Flag.JMP
        elif pc >= 0 and ((opcode & 0x1F) == 0x10 or opcode == 0x80):
            target = (pc + 2 + _signed_byte(op1)) & 0xFFFF
            backward = target < pc
            self._entry(target).flags |= Flag.BB_TAKEN if backward else Flag.FB_TAKEN
            self._entry(pc + 2).flags |= Flag.BB_NOT_TAKEN if backward else Flag.FB_NOT_TAKEN
        self._last_opcode = opcode

    def done(self, out: Optional[TextIO] = None) -> None:
        blocks: Dict[int, AddressCount] = {}
        current = OTHER_CONTEXT
        for addr in sorted(a for a in self._counts if 0 <= a <= OTHER_CONTEXT):
            entry = self._counts[addr]
            if entry.flags:
                current = addr
                block = blocks.setdefault(current, AddressCount())
                block.flags = int(entry.flags)
                block.calls = entry.instructions
            block = blocks.setdefault(current, AddressCount())
            block.cycles += entry.cycles
            block.instructions += entry.instructions
        output_helper(_dense_counts(blocks), False, True, self.em, self.symbols, out)