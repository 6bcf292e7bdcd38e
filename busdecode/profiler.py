"""Common profiler interface and the shared per-address report writer."""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntFlag
from typing import ClassVar, Optional, Sequence, TextIO

from .defs import CpuEmulator, Instruction
from .symbols import SymbolTable

# Slot for instructions that fall outside the region of interest.
OTHER_CONTEXT = 0x10000

# Maximum length of the bar of asterisks.
BAR_WIDTH = 50


class Flag(IntFlag):
    """Block-profiler markers on an address."""

    IMP = 1
    JSR = 2
    JMP = 4
    BB_TAKEN = 8
    FB_TAKEN = 16
    BB_NOT_TAKEN = 32
    FB_NOT_TAKEN = 64
    JMP_IND = 128
    JMP_INDX = 256


_FLAG_CHARS = (
    (Flag.JSR, "J"),
    (Flag.JMP, "j"),
    (Flag.BB_TAKEN, "B"),
    (Flag.FB_TAKEN, "F"),
    (Flag.BB_NOT_TAKEN, "b"),
    (Flag.FB_NOT_TAKEN, "f"),
    (Flag.JMP_IND, "i"),
    (Flag.JMP_INDX, "x"),
)


@dataclass
class AddressCount:
    """Counters collected for one address (or block)."""

    cycles: int = 0
    instructions: int = 0
    calls: int = 0
    flags: int = 0


class Profiler(ABC):
    """Base class for profilers fed one executed instruction at a time."""

    name: ClassVar[str] = ""

    def __init__(self, arg: Optional[str] = None, symbols: Optional[SymbolTable] = None) -> None:
        self.arg = arg or ""
        self.symbols = symbols
        self.em: Optional[CpuEmulator] = None

    def init(self, em: Optional[CpuEmulator]) -> None:
        """Reset collected data and remember the emulator used for reporting."""
        self.em = em

    @abstractmethod
    def profile_instruction(self, pc: int, opcode: int, op1: int, op2: int, num_cycles: int) -> None:
        """Account for one executed instruction."""

    @abstractmethod
    def done(self, out: Optional[TextIO] = None) -> None:
        """Write the profile report."""


def _ratio(a: float, b: float) -> float:
    if b:
        return a / b
    return float("nan") if a == 0 else float("inf")


def _signed_byte(value: int) -> int:
    value &= 0xFF
    return value - 0x100 if value & 0x80 else value


def output_helper(
    counts: Sequence[AddressCount],
    show_bars: bool,
    show_other: bool,
    em: Optional[CpuEmulator] = None,
    symbols: Optional[SymbolTable] = None,
    out: Optional[TextIO] = None,
) -> None:
    """Write a per-address report of ``counts`` (indexed 0..OTHER_CONTEXT)."""
    out = sys.stdout if out is None else out
    entries = counts[: OTHER_CONTEXT + 1]

    max_cycles = 0
    total_cycles = 0
    total_instr = 0
    page_crossing_cycles = 0
    for addr, entry in enumerate(entries):
        max_cycles = max(max_cycles, entry.cycles)
        total_cycles += entry.cycles
        total_instr += entry.instructions
        if em is not None and entry.cycles:
            opcode = em.read_memory(addr)
            if (opcode & 0x1F) == 0x10 or opcode == 0x80:
                offset = _signed_byte(em.read_memory(addr + 1))
                if ((addr + 2) & 0xFF00) != ((addr + 2 + offset) & 0xFF00):
                    # Cycles that could be saved if the branch stayed in its page.
                    saved = (entry.cycles - 2 * entry.instructions) & 0xFFFFFFFF
                    page_crossing_cycles += saved // 2

    bar_scale = BAR_WIDTH / max_cycles if max_cycles else 0.0
    total_percent = 0.0

    for addr, entry in enumerate(entries):
        name = symbols.lookup(addr) if symbols is not None else None
        if name:
            out.write(f"\n{name}\n")
        if not entry.cycles:
            continue
        percent = 100.0 * entry.cycles / total_cycles
        total_percent += percent
        if addr == OTHER_CONTEXT:
            out.write("****")
        else:
            out.write(f"{addr:04x}")
            if em is not None:
                instruction = Instruction(
                    pc=addr,
                    opcode=em.read_memory(addr),
                    op1=em.read_memory(addr + 1),
                    op2=em.read_memory(addr + 2),
                )
                out.write(" " + em.disassemble(instruction).ljust(12))
        cpi = _ratio(entry.cycles, entry.instructions)
        out.write(
            f" : {entry.cycles:8d} cycles ({percent:10.6f}%) "
            f"{entry.instructions:8d} ins ({cpi:4.2f} cpi)"
        )
        if show_other:
            marks = "".join(ch if entry.flags & flag else " " for flag, ch in _FLAG_CHARS)
            out.write(f" {entry.calls:8d} calls ({marks})")
        if show_bars:
            out.write(" " + "*" * int(bar_scale * entry.cycles))
        out.write("\n")

    total_cpi = _ratio(total_cycles, total_instr)
    out.write(
        f"     : {total_cycles:8d} cycles ({total_percent:10.6f}%) "
        f"{total_instr:8d} ins ({total_cpi:4.2f} cpi)\n"
    )
    crossing_percent = _ratio(page_crossing_cycles * 100.0, total_cycles)
    out.write(
        f"     : {page_crossing_cycles:8d} branch page crossing cycles ({crossing_percent:10.6f}%)\n"
    )