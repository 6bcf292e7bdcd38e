from dataclasses import replace

import pytest

from busdecode.defs import (
    Cpu,
    CpuEmulator,
    Instruction,
    Machine,
    Sample,
    SampleType,
)


class _Emulator(CpuEmulator):
    def __init__(self, memory):
        self.memory = memory

    def read_memory(self, address):
        return self.memory.get(address, 0)

    def disassemble(self, instruction):
        return f"OP {instruction.opcode:02X}"


def test_cpu_emulator_cannot_be_instantiated():
    with pytest.raises(TypeError):
        CpuEmulator()


def test_emulator_subclass_reads_and_disassembles():
    em = _Emulator({0x2000: 0xEA})
    assert em.read_memory(0x2000) == 0xEA
    assert em.read_memory(0x2001) == 0
    assert em.disassemble(Instruction(pc=0x2000, opcode=0xEA)) == "OP EA"


def test_sample_unknown_signals_default_to_none():
    s = Sample(sample_count=1, cycle_count=2, type=SampleType.OPCODE, data=0xA9)
    assert s.rnw is None
    assert s.e is None
    assert s.sin is None
    assert s.data == 0xA9


def test_sample_type_order_follows_source():
    assert SampleType(4) is SampleType.OPCODE
    assert SampleType(0) is SampleType.UNKNOWN
    assert SampleType.LAST > SampleType.OPCODE


def test_enums_from_values():
    assert Cpu(0) is Cpu.UNKNOWN
    assert Machine(0) is Machine.DEFAULT
    assert Cpu(Cpu.CPU_65C816.value) is Cpu.CPU_65C816


def test_instruction_defaults_and_replace():
    ins = Instruction(pc=0x1234, opcode=0xA9)
    other = replace(ins, op1=0x42)
    assert ins.op1 == 0
    assert other.op1 == 0x42
    assert other.pc == 0x1234
    assert other != ins