"""Profilers, symbol tables, Tube protocol decoding and containers for 6502-family bus traces."""

__version__ = "0.1.0"
__all__ = [
    "avltree",
    "defs",
    "linearqueue",
    "linkedlist",
    "profiler",
    "profiler_block",
    "profiler_call",
    "profiler_instr",
    "profilers",
    "symbols",
    "tube_decode",
]