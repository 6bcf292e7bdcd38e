import io
import logging
import re

from busdecode.profiler_call import CALL_STACK_SIZE, CallProfiler
from busdecode.symbols import SymbolTable

NODE = re.compile(r"^ *(\d+) cycles \( *(\S+)%\) +(\d+) calls: (.*)$")
TOTAL = re.compile(r"^ *(\d+) cycles \( *(\S+)%\)$")


def parse(profiler):
    buf = io.StringIO()
    profiler.done(buf)
    nodes = []
    total = None
    for line in buf.getvalue().splitlines():
        m = NODE.match(line)
        if m:
            nodes.append((m.group(4), int(m.group(1)), int(m.group(3))))
            continue
        t = TOTAL.match(line)
        if t:
            total = (int(t.group(1)), t.group(2))
    return nodes, total


def as_dict(nodes):
    return {path: (cycles, calls) for path, cycles, calls in nodes}


def test_call_and_return():
    p = CallProfiler()
    jsr, body, rts, after = 6, 2, 6, 2
    p.profile_instruction(0x1000, 0x20, 0x00, 0x20, jsr)
    p.profile_instruction(0x2000, 0xEA, 0, 0, body)
    p.profile_instruction(0x2001, 0x60, 0, 0, rts)
    p.profile_instruction(0x1003, 0xEA, 0, 0, after)
    nodes, total = parse(p)
    result = as_dict(nodes)
    assert result[""] == (jsr + after, 0)
    assert result["2000"] == (body + rts, 1)
    assert total[0] == jsr + body + rts + after
    assert total[1] == "100.000000"


def test_repeated_call_reuses_node():
    p = CallProfiler()
    for _ in range(2):
        p.profile_instruction(0x1000, 0x20, 0x00, 0x20, 6)
        p.profile_instruction(0x2000, 0x60, 0, 0, 6)
    nodes, _ = parse(p)
    assert as_dict(nodes)["2000"][1] == 2
    assert len(nodes) == 2


def test_nested_paths_in_order():
    p = CallProfiler()
    p.profile_instruction(0x1000, 0x20, 0x00, 0x20, 6)
    p.profile_instruction(0x2000, 0x20, 0x00, 0x30, 6)
    p.profile_instruction(0x3000, 0x60, 0, 0, 6)
    p.profile_instruction(0x2003, 0x60, 0, 0, 6)
    p.profile_instruction(0x1003, 0x20, 0x00, 0x40, 6)
    p.profile_instruction(0x4000, 0x60, 0, 0, 6)
    nodes, _ = parse(p)
    assert [path for path, _, _ in nodes] == ["", "2000", "2000->3000", "4000"]


def test_symbol_names_and_hex_fallback():
    symbols = SymbolTable(0x10000)
    symbols.add(".func", 0x2000)
    p = CallProfiler(None, symbols)
    p.profile_instruction(0x1000, 0x20, 0x00, 0x20, 6)
    p.profile_instruction(0x2000, 0x20, 0xCD, 0xAB, 6)
    paths = [path for path, _, _ in parse(p)[0]]
    assert "func" in paths
    assert "func->ABCD" in paths


def test_underflow_reinitialises(caplog):
    p = CallProfiler()
    p.profile_instruction(0x1000, 0xEA, 0, 0, 5)
    with caplog.at_level(logging.WARNING, logger="busdecode.profiler_call"):
        p.profile_instruction(0x1001, 0x60, 0, 0, 6)
    assert "underflowed" in caplog.text
    p.profile_instruction(0x1000, 0xEA, 0, 0, 2)
    nodes, _ = parse(p)
    assert as_dict(nodes) == {"": (2, 0)}


def test_overflow_disables_profiling(caplog):
    p = CallProfiler()
    for _ in range(CALL_STACK_SIZE):
        p.profile_instruction(0x1000, 0x20, 0x00, 0x10, 6)
    with caplog.at_level(logging.WARNING, logger="busdecode.profiler_call"):
        p.profile_instruction(0x1000, 0x20, 0x00, 0x10, 6)
    assert "overflowed" in caplog.text
    _, before = parse(p)
    p.profile_instruction(0x1000, 0xEA, 0, 0, 2)
    _, after = parse(p)
    assert before == after
    assert before[0] == 6 * (CALL_STACK_SIZE + 1)


def test_init_clears_graph():
    p = CallProfiler()
    p.profile_instruction(0x1000, 0x20, 0x00, 0x20, 6)
    p.init(None)
    nodes, total = parse(p)
    assert nodes == [("", 0, 0)]
    assert total[0] == 0