import math

import pytest

from mokapot.instruction import Instruction, WideInstruction
from mokapot.pc import ProgramCounter
from mokapot.raw_instruction import Opcode
from mokapot.values import ConstantValue


def test_opcode():
    assert Instruction(Opcode.NOP).opcode == 0x00
    assert Instruction(Opcode.ACONST_NULL).opcode == 0x01
    assert Instruction(Opcode.ICONST_M1).opcode == 0x02
    assert Instruction(Opcode.ILOAD, index=233).opcode == 0x15


@pytest.mark.parametrize(
    "instruction, name",
    [
        (Instruction(Opcode.ACONST_NULL), "aconst_null"),
        (Instruction(Opcode.ALOAD_0), "aload_0"),
        (Instruction(Opcode.ILOAD, index=233), "iload"),
        (Instruction(Opcode.LDC2_W, constant=ConstantValue.long(1)), "ldc2_w"),
        (Instruction(Opcode.IF_ICMPEQ, target=4), "if_icmpeq"),
        (Instruction(Opcode.DUP2_X1), "dup2_x1"),
        (Instruction(Opcode.GOTO_W, target=0), "goto_w"),
        (Instruction(Opcode.IMPDEP2), "impdep2"),
    ],
)
def test_name(instruction, name):
    assert instruction.name == name


def test_branch_target_coerced_to_program_counter():
    instruction = Instruction(Opcode.GOTO, target=5)
    assert instruction.target == ProgramCounter(5)


def test_ldc_constant_operand():
    constant = ConstantValue.string("233")
    assert Instruction(Opcode.LDC, constant=constant).constant == constant


def test_ldc_requires_constant_value():
    with pytest.raises(TypeError):
        Instruction(Opcode.LDC, constant=5)


def test_lookupswitch_targets_are_sorted():
    instruction = Instruction(
        Opcode.LOOKUPSWITCH, default=10, match_targets={5: 20, -1: 30, 2: 40}
    )
    assert list(instruction.match_targets) == [-1, 2, 5]
    assert instruction.match_targets[2] == ProgramCounter(40)
    assert instruction.default == ProgramCounter(10)


def test_tableswitch_operands():
    instruction = Instruction(
        Opcode.TABLESWITCH, low=0, high=1, jump_targets=[3, 4], default=5
    )
    assert instruction.jump_targets == (ProgramCounter(3), ProgramCounter(4))
    assert (instruction.low, instruction.high) == (0, 1)


def test_invokedynamic_operands():
    instruction = Instruction(
        Opcode.INVOKEDYNAMIC,
        bootstrap_method_index=0,
        method_name="run",
        descriptor="()Ljava/lang/Runnable;",
    )
    assert instruction.method_name == "run"
    assert instruction.name == "invokedynamic"


def test_missing_operand_rejected():
    with pytest.raises(TypeError):
        Instruction(Opcode.ILOAD)


def test_unexpected_operand_rejected():
    with pytest.raises(TypeError):
        Instruction(Opcode.NOP, index=1)


def test_operand_range_checked():
    with pytest.raises(ValueError):
        Instruction(Opcode.BIPUSH, value=256)
    with pytest.raises(ValueError):
        Instruction(Opcode.GOTO, target=-1)


def test_unknown_opcode_rejected():
    with pytest.raises(ValueError):
        Instruction(0xCB)


def test_equality_and_hash():
    lhs = Instruction(Opcode.LDC, constant=ConstantValue.float32(math.nan))
    rhs = Instruction(Opcode.LDC, constant=ConstantValue.float32(math.nan))
    assert lhs == rhs
    assert hash(lhs) == hash(rhs)
    assert (Instruction(Opcode.ILOAD, index=1) == Instruction(Opcode.ILOAD, index=2)) is False


def test_lookupswitch_hashes_equal_when_equal():
    lhs = Instruction(Opcode.LOOKUPSWITCH, default=0, match_targets={1: 2, 3: 4})
    rhs = Instruction(Opcode.LOOKUPSWITCH, default=0, match_targets={3: 4, 1: 2})
    assert lhs == rhs
    assert hash(lhs) == hash(rhs)


def test_instruction_is_immutable():
    instruction = Instruction(Opcode.ILOAD, index=1)
    with pytest.raises(AttributeError):
        instruction.index = 2
    assert instruction.index == 1


def test_missing_operand_attribute():
    with pytest.raises(AttributeError):
        Instruction(Opcode.NOP).index


def test_wide_instruction():
    wide = WideInstruction(Opcode.IINC, 300, -70000)
    instruction = Instruction(Opcode.WIDE, instruction=wide)
    assert instruction.instruction.index == 300
    assert instruction.instruction.name == "iinc"
    assert instruction.name == "wide"


def test_wide_rejects_unwidenable_opcode():
    with pytest.raises(ValueError):
        WideInstruction(Opcode.NOP, 1)


def test_wide_iinc_needs_increment():
    with pytest.raises(TypeError):
        WideInstruction(Opcode.IINC, 1)
    with pytest.raises(TypeError):
        WideInstruction(Opcode.ILOAD, 1, 2)