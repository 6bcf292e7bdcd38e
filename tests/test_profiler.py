import io

import pytest

from busdecode.defs import CpuEmulator
from busdecode.profiler import (
    BAR_WIDTH,
    OTHER_CONTEXT,
    AddressCount,
    Flag,
    Profiler,
    output_helper,
)
from busdecode.symbols import SymbolTable


class _Emulator(CpuEmulator):
    def __init__(self, memory=None):
        self.memory = memory or {}

    def read_memory(self, address):
        return self.memory.get(address, 0)

    def disassemble(self, instruction):
        return "NOP"


def _counts():
    return [AddressCount() for _ in range(OTHER_CONTEXT + 1)]


def _report(counts, **kwargs):
    out = io.StringIO()
    output_helper(counts, kwargs.pop("show_bars", False), kwargs.pop("show_other", False), out=out, **kwargs)
    return out.getvalue().splitlines()


def test_single_address_line_and_totals():
    counts = _counts()
    counts[0x1000] = AddressCount(cycles=10, instructions=5)
    lines = _report(counts)
    assert lines[0].startswith("1000 :")
    assert "100.000000%" in lines[0]
    assert "(2.00 cpi)" in lines[0]
    assert lines[1].startswith("     :")
    assert "100.000000%" in lines[1]
    assert "branch page crossing cycles" in lines[2]


def test_other_context_is_stars():
    counts = _counts()
    counts[OTHER_CONTEXT] = AddressCount(cycles=4, instructions=2)
    lines = _report(counts)
    assert lines[0].startswith("**** :")


def test_disassembly_is_padded():
    counts = _counts()
    counts[0x2000] = AddressCount(cycles=3, instructions=1)
    lines = _report(counts, em=_Emulator())
    assert lines[0].startswith("2000 " + "NOP".ljust(12) + " :")


def test_symbols_printed_before_address():
    counts = _counts()
    counts[0x0300] = AddressCount(cycles=6, instructions=3)
    symbols = SymbolTable(0x10000)
    symbols.add("main", 0x0300)
    lines = _report(counts, symbols=symbols)
    index = lines.index("main")
    assert lines[index - 1] == ""
    assert lines[index + 1].startswith("0300 :")


def test_bars_scale_to_largest_entry():
    counts = _counts()
    counts[0x10] = AddressCount(cycles=200, instructions=100)
    counts[0x20] = AddressCount(cycles=100, instructions=50)
    lines = _report(counts, show_bars=True)
    first = next(line for line in lines if line.startswith("0010"))
    second = next(line for line in lines if line.startswith("0020"))
    assert first.endswith(" " + "*" * BAR_WIDTH)
    assert second.endswith(" " + "*" * (BAR_WIDTH // 2))


def test_flags_column():
    counts = _counts()
    counts[0x40] = AddressCount(cycles=8, instructions=4, calls=1, flags=Flag.JSR | Flag.JMP_IND)
    lines = _report(counts, show_other=True)
    assert "(J     i )" in lines[0]
    assert "calls" in lines[0]


def test_percentages_sum_to_total():
    counts = _counts()
    for addr, cycles in [(1, 3), (2, 7), (3, 11)]:
        counts[addr] = AddressCount(cycles=cycles, instructions=1)
    lines = _report(counts)
    percents = [float(line.split("(")[1].split("%")[0]) for line in lines[:3]]
    assert sum(percents) == pytest.approx(100.0, abs=1e-4)


def test_branch_page_crossing_counted():
    counts = _counts()
    counts[0x10F0] = AddressCount(cycles=30, instructions=10)
    em = _Emulator({0x10F0: 0xD0, 0x10F1: 0x7F})
    lines = _report(counts, em=em)
    assert lines[-1].startswith("     :        5 branch page crossing cycles")


def test_branch_within_page_not_counted():
    counts = _counts()
    counts[0x1000] = AddressCount(cycles=30, instructions=10)
    em = _Emulator({0x1000: 0xD0, 0x1001: 0x04})
    lines = _report(counts, em=em)
    assert lines[-1].startswith("     :        0 branch page crossing cycles")


def test_profiler_is_abstract():
    with pytest.raises(TypeError):
        Profiler()


class _Recorder(Profiler):
    name = "recorder"

    def __init__(self, arg=None, symbols=None):
        super().__init__(arg, symbols)
        self.seen = []

    def profile_instruction(self, pc, opcode, op1, op2, num_cycles):
        self.seen.append((pc, num_cycles))

    def done(self, out=None):
        out.write(f"{len(self.seen)}\n")


def test_profiler_subclass_lifecycle():
    profiler = _Recorder(None)
    em = _Emulator()
    Profiler.init(profiler, em)
    profiler.profile_instruction(0x1234, 0xEA, 0, 0, 2)
    out = io.StringIO()
    profiler.done(out)
    assert profiler.arg == ""
    assert profiler.em is em
    assert profiler.seen == [(0x1234, 2)]
    assert out.getvalue() == "1\n"