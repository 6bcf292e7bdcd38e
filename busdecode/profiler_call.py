"""Call-graph profiler: attributes cycles to JSR call stacks."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Optional, TextIO, Tuple

from .avltree import AvlTree
from .defs import CpuEmulator
from .profiler import Profiler
from .symbols import SymbolTable

log = logging.getLogger(__name__)

# The 6502 stack can only hold 128 return addresses.
CALL_STACK_SIZE = 128


@dataclass(eq=False)
class _CallStack:
    stack: Tuple[int, ...]
    parent: Optional["_CallStack"] = None
    call_count: int = 0
    cycle_count: int = 0


def _compare(a: _CallStack, b: _CallStack) -> int:
    return (a.stack > b.stack) - (a.stack < b.stack)


def _percent(part: int, total: int) -> float:
    if total:
        return 100.0 * part / total
    return float("nan") if part == 0 else float("inf")


class CallProfiler(Profiler):
    """Accumulates cycles and call counts for every distinct call stack."""

    name = "call"

    def __init__(self, arg: Optional[str] = None, symbols: Optional[SymbolTable] = None) -> None:
        super().__init__(arg, symbols)
        self._tree = AvlTree(_compare)
        self._current = _CallStack(())
        self._enabled = True
        self.init(None)

    def init(self, em: Optional[CpuEmulator] = None) -> None:
        self._tree = AvlTree(_compare)
        self._current = self._tree.search(_CallStack(()))
        self._enabled = True
        self.em = em

    def profile_instruction(self, pc: int, opcode: int, op1: int, op2: int, num_cycles: int) -> None:
        if not self._enabled:
            return
        current = self._current
        current.cycle_count += num_cycles
        if opcode == 0x20:
            if len(current.stack) < CALL_STACK_SIZE:
                addr = (op2 << 8 | op1) & 0xFFFF
                child = _CallStack(current.stack + (addr,), parent=current)
                self._current = self._tree.search(child)
                self._current.call_count += 1
            else:
                log.warning("call stack overflowed, disabling further profiling")
                for i, addr in enumerate(current.stack):
                    log.warning("stack[%3d] = %04x", i, addr)
                self._enabled = False
        if opcode == 0x60:
            if self._current.parent is not None:
                self._current = self._current.parent
            else:
                log.warning("call stack underflowed, re-initialize call graph")
                self.init(self.em)

    def _describe(self, stack: Tuple[int, ...]) -> str:
        parts = []
        for addr in stack:
            name = self.symbols.lookup(addr) if self.symbols is not None else None
            if name:
                parts.append(name[1:] if name.startswith(".") else name)
            else:
                parts.append(f"{addr:04X}")
        return "->".join(parts)

    def done(self, out: Optional[TextIO] = None) -> None:
        out = sys.stdout if out is None else out
        nodes = list(self._tree)
        total_cycles = sum(node.cycle_count for node in nodes)
        total_percent = 0.0
        for node in nodes:
            percent = _percent(node.cycle_count, total_cycles)
            total_percent += percent
            out.write(
                f"{node.cycle_count:8d} cycles ({percent:10.6f}%) "
                f"{node.call_count:8d} calls: {self._describe(node.stack)}\n"
            )
        out.write(f"{total_cycles:8d} cycles ({total_percent:10.6f}%)\n")