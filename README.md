# mokapot

A Python data model for JVM bytecode. It has these modules:

- `mokapot.pc`: program counters (`ProgramCounter`, `InvalidOffset`)
- `mokapot.values`: compile-time constant values (`JavaString`,
  `ConstantValue`, `ConstantKind`, `MethodHandle`, `MethodHandleKind`)
- `mokapot.constant_pool`: constant pool entries and the pool itself
  (`Entry`, `EntryKind`, `ConstantPool`, `BadConstantPoolIndex`)
- `mokapot.raw_instruction`: instructions as encoded, with constant-pool
  indices and branch offsets (`Opcode`, `RawInstruction`,
  `RawWideInstruction`)
- `mokapot.instruction`: instructions with resolved operands
  (`Instruction`, `WideInstruction`)
- `mokapot.method_body`: method bodies, instruction lists, exception tables,
  line number and local variable tables, and stack map frames

It has no dependencies outside the standard library.

## Installation

```
pip install .
```

To install the test dependencies as well:

```
pip install ".[test]"
```

## Usage

### Program counters

```python
from mokapot.pc import ProgramCounter, InvalidOffset

pc = ProgramCounter(10)
print(pc)            # #000A
pc + 5               # ProgramCounter(#000F)
pc + -5              # ProgramCounter(#0005)
pc.is_entry_point()  # False
ProgramCounter.ZERO.is_entry_point()  # True

try:
    pc + (2**31 - 1)
except InvalidOffset:
    ...
```

A counter holds a value in `0..0xFFFF`. Adding an offset that would take it
outside that range raises `InvalidOffset`.

### Constant values

```python
import math
from mokapot.values import ConstantValue, JavaString

str(ConstantValue.integer(3))          # 'int(3)'
str(ConstantValue.string("233"))       # 'String("233")'
str(JavaString(b"\xff"))               # 'String(0xFF) // Invalid UTF-8'
str(ConstantValue.null())              # 'null'

# NaNs of the same kind compare equal.
ConstantValue.double(math.nan) == ConstantValue.double(math.nan)  # True

# Values of different kinds sort in ConstantKind order.
ConstantValue.null() < ConstantValue.integer(0)  # True
```

`ConstantValue.float32` rounds its value to single precision. Integer and long
constants are checked against their 32- and 64-bit ranges.

### The constant pool

```python
from mokapot.constant_pool import ConstantPool, Entry, EntryKind, BadConstantPoolIndex

pool = ConstantPool([
    Entry(EntryKind.UTF8, value="Hello"),
    Entry(EntryKind.LONG, value=1),
    Entry(EntryKind.CLASS, name_index=1),
])
len(pool)                      # 5: index 0 is unused, a long takes two indices
pool.get_entry(4).name_index   # 1
pool.get_entry(1).constant_kind  # 'CONSTANT_Utf8'

try:
    pool.get_entry(3)          # the second index of the long
except BadConstantPoolIndex:
    ...
```

### Instructions

```python
from mokapot.raw_instruction import Opcode, RawInstruction, RawWideInstruction
from mokapot.instruction import Instruction
from mokapot.values import ConstantValue
from mokapot.pc import ProgramCounter

RawInstruction(Opcode.ILOAD, index=233).opcode   # Opcode.ILOAD (0x15)
RawInstruction(Opcode.WIDE, instruction=RawWideInstruction(Opcode.IINC, index=300, increment=-5))

ldc = Instruction(Opcode.LDC, constant=ConstantValue.string("233"))
ldc.name      # 'ldc'
ldc.constant  # the ConstantValue
Instruction(Opcode.GOTO, target=ProgramCounter(4)).target
```

Each opcode takes a fixed set of named operands; missing or unexpected
operands raise `TypeError`, and integers out of their encoded range raise
`ValueError`.

### Method bodies

```python
from mokapot.method_body import (
    InstructionList, MethodBody, ExceptionTableEntry,
    LocalVariableTable, LocalVariableId, MalformedError,
)
from mokapot.instruction import Instruction
from mokapot.raw_instruction import Opcode
from mokapot.pc import ProgramCounter

insns = InstructionList([
    (0, Instruction(Opcode.NOP)),
    (1, Instruction(Opcode.ICONST_0)),
    (2, Instruction(Opcode.IRETURN)),
])
insns.next_pc_of(0)        # ProgramCounter(#0001)
insns.prev_pc_of(0)        # None
insns.last_instruction()   # (ProgramCounter(#0002), Instruction.IRETURN())

body = MethodBody(max_stack=1, max_locals=0, instructions=insns)
body.instruction_at(1)     # Instruction.ICONST_0()

ExceptionTableEntry(0, 1, 2).covers(1)   # True: both ends are inclusive

table = LocalVariableTable()
key = LocalVariableId(0, 3, 0)
table.merge_type(key, "x", "I")
table.merge_signature(key, "x", "TT;")
table.merge_type(key, "y", "I")          # raises MalformedError
```

`VerificationType` and `StackMapFrame` describe the entries of a stack map
table; each checks that it carries only the fields its kind allows.

## What this package does not do

It does not read class files from bytes or streams: constant pools, instructions
and method bodies are built from Python values. It does not resolve raw
instructions into resolved ones, model classes, fields, methods, modules or
access flags, or find and load classes from directories or archives.

## Running the tests

```
pytest
```