"""Profiler factory and the set of profilers active for a run."""

from __future__ import annotations

import sys
from typing import Dict, List, Optional, TextIO, Tuple, Type

from .defs import CpuEmulator
from .profiler import Profiler
from .profiler_block import BlockProfiler
from .profiler_call import CallProfiler
from .profiler_instr import InstrProfiler
from .symbols import SymbolTable

MAX_PROFILERS = 10

_RULE = "=" * 78

_FACTORIES: Dict[str, Type[Profiler]] = {
    "instr": InstrProfiler,
    "block": BlockProfiler,
    "call": CallProfiler,
}


def _split_spec(spec: str) -> Tuple[Optional[str], Optional[str]]:
    stripped = spec.lstrip(",")
    if not stripped:
        return None, None
    kind, _, rest = stripped.partition(",")
    return kind, rest or None


def create_profiler(spec: str, symbols: Optional[SymbolTable] = None) -> Profiler:
    """Build a profiler from ``type[,args]``; raise ValueError for an unknown type."""
    kind, rest = _split_spec(spec)
    if kind is None:
        raise ValueError("empty profiler specification")
    factory = _FACTORIES.get(kind.lower())
    if factory is None:
        raise ValueError(f"unknown profiler type {kind}")
    return factory(rest, symbols)


class ProfilerSet:
    """The profilers selected for a run, fed and reported together."""

    def __init__(self, symbols: Optional[SymbolTable] = None) -> None:
        self.symbols = symbols
        self._profilers: List[Profiler] = []

    def add(self, spec: Optional[str]) -> Optional[Profiler]:
        """Add a profiler from ``spec``; an empty spec is ignored."""
        if not spec:
            return None
        if len(self._profilers) >= MAX_PROFILERS:
            raise ValueError(f"too many profilers (at most {MAX_PROFILERS})")
        profiler = create_profiler(spec, self.symbols)
        self._profilers.append(profiler)
        return profiler

    def init(self, em: Optional[CpuEmulator] = None) -> None:
        for profiler in self._profilers:
            profiler.init(em)

    def profile_instruction(self, pc: int, opcode: int, op1: int, op2: int, num_cycles: int) -> None:
        for profiler in self._profilers:
            profiler.profile_instruction(pc, opcode, op1, op2, num_cycles)

    def done(self, out: Optional[TextIO] = None) -> None:
        out = sys.stdout if out is None else out
        for profiler in self._profilers:
            out.write(f"{_RULE}\n")
            out.write(f"Profiler: {profiler.name}; Args: {profiler.arg}\n")
            out.write(f"{_RULE}\n")
            profiler.done(out)

    def __len__(self) -> int:
        return len(self._profilers)