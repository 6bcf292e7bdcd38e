# busdecode

Building blocks for analysing bus-level traces of 6502-family processors:
execution profilers, an address-to-symbol table, a decoder for the Acorn
Tube register protocol, and a few small container types.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

- `busdecode.defs`: enumerations `Machine`, `Cpu` and `SampleType`, the
  dataclasses `Sample` and `Instruction`, the constant `DEPTH`, and the
  abstract `CpuEmulator` with `read_memory(address)` and
  `disassemble(instruction)`.
- `busdecode.avltree`: `AvlTree(compare)`, a balanced search tree ordered by
  a comparison function returning <0, 0 or >0. `find` looks a key up,
  `search` finds or inserts, `delete` removes and returns the stored key,
  `walk(action)` calls `action(key, visit, depth)` with a `Visit` of
  `PREORDER`, `POSTORDER`, `ENDORDER` or `LEAF`, and `destroy(free_key)`
  empties the tree. It supports `len()` and in-order iteration.
- `busdecode.symbols`: `SymbolTable(size)` maps addresses `0..size-1` to
  names. `add` raises `ValueError` for an address outside the table,
  `lookup` returns `None` for unnamed or out-of-range addresses, and
  `import_swift(path)` reads a `[{'name':1234L,...}]` symbol dump and returns
  the number of symbols added.
- `busdecode.profiler`: the abstract `Profiler` base class, the `Flag`
  bit flags, the `AddressCount` counters, and `output_helper`, which writes
  the per-address report shared by the instruction and block profilers.
- `busdecode.profiler_instr`: `InstrProfiler`, which counts cycles and
  instructions per address. Its argument is `min,max,bucket` in hex;
  addresses outside `min..max` are counted together in the "other" slot
  (printed as `****`), and a bucket of 2 or more groups addresses.
- `busdecode.profiler_block`: `BlockProfiler`, which counts cycles per basic
  block. Blocks start at JSR, JMP and branch targets, at the address after a
  branch and after an indirect JMP. Its argument is `min,max` in hex.
- `busdecode.profiler_call`: `CallProfiler`, which counts cycles and calls
  for each distinct JSR call stack, popping on RTS. On stack overflow it
  logs a warning and stops profiling; on underflow it logs a warning and
  starts a fresh call graph.
- `busdecode.profilers`: `create_profiler(spec, symbols)` builds a profiler
  from a specification such as `"instr,c000,ffff,10"` (type names `instr`,
  `block` and `call`, case-insensitive) and raises `ValueError` for an
  unknown or empty type. `ProfilerSet` holds up to ten profilers and feeds
  and reports them together.
- `busdecode.tube_decode`: `TubeDecoder(out)`, which turns Tube register
  accesses into one line of text per decoded event. `read(reg, data)` takes
  parasite-initiated accesses and `write(reg, data)` host-initiated ones. A
  subclass that sets `decode_x86_osword = True` also decodes the OSWORD &FB
  and &FF extensions.
- `busdecode.linkedlist`: `LinkedList` of `LinkedListNode` objects, a
  doubly linked list whose nodes carry their own links.
- `busdecode.linearqueue`: `LinearQueue(chunk_size, keep_old)`, a
  double-ended queue stored in fixed-size chunks. `pop_tail` and `pop_head`
  raise `IndexError` on an empty queue.

## Example

```python
import sys

from busdecode.symbols import SymbolTable
from busdecode.profilers import ProfilerSet

symbols = SymbolTable(0x10000)
symbols.add("reset", 0xC000)

profilers = ProfilerSet(symbols)
profilers.add("instr,c000,ffff")
profilers.add("call")
profilers.init(None)

profilers.profile_instruction(0xC000, 0x20, 0x00, 0xD0, 6)   # JSR &D000
profilers.profile_instruction(0xD000, 0x60, 0x00, 0x00, 6)   # RTS

profilers.done(sys.stdout)
```

The call to `init` above passes `None` where a `CpuEmulator` would go.
Given an emulator, the instruction and block reports add disassembly of each
address and an estimate of cycles spent on branches that cross a page.

A Tube decoder writes to the stream it was given (standard output if none):

```python
import sys
from busdecode.tube_decode import TubeDecoder

tube = TubeDecoder(sys.stdout)
tube.read(1, ord("A"))      # R1: OSWRCH: A <41>
```

## What it does not do

There is no command-line program, and nothing here reads captured bus
samples from a logic analyser or file. `CpuEmulator` is only an interface:
no processor emulator or disassembler is included, so you supply one to get
disassembly in the reports.