import io

import pytest

from busdecode.profiler_block import BlockProfiler
from busdecode.profiler_call import CallProfiler
from busdecode.profiler_instr import InstrProfiler
from busdecode.profilers import MAX_PROFILERS, ProfilerSet, create_profiler


def test_create_each_type():
    instr = create_profiler("instr,1000,2000")
    assert isinstance(instr, InstrProfiler)
    assert instr.arg == "1000,2000"
    assert instr.profile_min == 0x1000
    assert isinstance(create_profiler("block"), BlockProfiler)
    assert isinstance(create_profiler("call"), CallProfiler)


def test_type_is_case_insensitive():
    p = create_profiler("BLOCK,100,200")
    assert isinstance(p, BlockProfiler)
    assert p.arg == "100,200"
    assert p.profile_min == 0x100
    assert p.profile_max == 0x200


def test_unknown_type_raises():
    with pytest.raises(ValueError, match="unknown profiler type bogus"):
        create_profiler("bogus,1")


def test_empty_spec_raises():
    with pytest.raises(ValueError):
        create_profiler(",,,")


def test_leading_commas_skipped():
    p = create_profiler(",,instr")
    assert isinstance(p, InstrProfiler)
    assert p.arg == ""


def test_add_ignores_empty():
    s = ProfilerSet()
    assert s.add("") is None
    assert len(s) == 0


def test_add_returns_profiler():
    s = ProfilerSet()
    p = s.add("call")
    assert isinstance(p, CallProfiler)
    assert len(s) == 1


def test_too_many_profilers():
    s = ProfilerSet()
    for _ in range(MAX_PROFILERS):
        s.add("instr")
    with pytest.raises(ValueError):
        s.add("instr")
    assert len(s) == MAX_PROFILERS


def test_done_writes_headers_and_reports():
    s = ProfilerSet()
    s.add("instr,0,ffff")
    s.add("call")
    s.init(None)
    s.profile_instruction(0x1000, 0xEA, 0, 0, 2)
    buf = io.StringIO()
    s.done(buf)
    lines = buf.getvalue().splitlines()
    rule = "=" * 78
    assert lines[0] == rule
    assert lines[1] == "Profiler: instr; Args: 0,ffff"
    assert lines[2] == rule
    assert "Profiler: call; Args: " in lines
    assert any(line.startswith("1000 :") for line in lines)


def test_init_resets_all():
    s = ProfilerSet()
    s.add("instr")
    s.profile_instruction(0x1234, 0xEA, 0, 0, 2)
    s.init(None)
    buf = io.StringIO()
    s.done(buf)
    assert not any(line.startswith("1234") for line in buf.getvalue().splitlines())