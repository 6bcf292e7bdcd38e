"""Core data types shared by the bus decoder: machines, CPUs, samples and instructions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

# Sample queue depth: must hold the longest instruction.
DEPTH = 30


class Machine(IntEnum):
    """Host machine the captured bus belongs to."""

    DEFAULT = 0
    BEEB = 1
    MASTER = 2
    ELK = 3
    ATOM = 4
    MEK6800D2 = 5
    BLITTER = 6


class Cpu(IntEnum):
    """Processor variant being decoded."""

    UNKNOWN = 0
    CPU_6502 = 1
    CPU_6502_ARLET = 2
    CPU_65C02 = 3
    CPU_65C02_ROCKWELL = 4
    CPU_65C02_WDC = 5
    CPU_65C02_ARLET = 6
    CPU_65C02_ALAND = 7
    CPU_65C816 = 8
    CPU_6800 = 9
    SCMP = 10


class SampleType(IntEnum):
    """Kind of bus cycle, abstracting 6502 SYNC and 65816 VDA/VPA."""

    UNKNOWN = 0
    INTERNAL = 1
    PROGRAM = 2
    DATA = 3
    OPCODE = 4
    LAST = 5  # end of stream marker


@dataclass
class Sample:
    """One captured bus cycle. Signals that were not captured are None."""

    sample_count: int
    cycle_count: int
    type: SampleType
    data: int
    rnw: Optional[int] = None
    rst: Optional[int] = None
    e: Optional[int] = None
    user: Optional[int] = None
    sa: Optional[int] = None
    sb: Optional[int] = None
    sin: Optional[int] = None


@dataclass
class Instruction:
    """A decoded instruction: address, opcode and operand bytes."""

    pc: int = 0
    pb: int = 0
    opcode: int = 0
    op1: int = 0
    op2: int = 0
    op3: int = 0
    opcount: int = 0


class CpuEmulator(ABC):
    """The part of a CPU emulator that profilers and reports rely on."""

    @abstractmethod
    def read_memory(self, address: int) -> int:
        """Return the byte the emulator believes is stored at ``address``."""

    @abstractmethod
    def disassemble(self, instruction: Instruction) -> str:
        """Return the disassembly text of ``instruction``."""