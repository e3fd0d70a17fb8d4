import pytest

from mokapot.raw_instruction import Opcode, RawInstruction, RawWideInstruction


def test_opcode():
    assert RawInstruction(Opcode.NOP).opcode == 0x00
    assert RawInstruction(Opcode.ACONST_NULL).opcode == 0x01
    assert RawInstruction(Opcode.ICONST_M1).opcode == 0x02
    assert RawInstruction(Opcode.ILOAD, index=233).opcode == 0x15


def test_opcode_from_int():
    assert RawInstruction(0xB1).opcode is Opcode.RETURN


def test_unknown_opcode():
    with pytest.raises(ValueError):
        RawInstruction(0xCB)


def test_mnemonic():
    assert RawInstruction(Opcode.IF_ICMPEQ, offset=3).opcode.mnemonic == "if_icmpeq"
    assert RawInstruction(Opcode.LDC2_W, const_index=4).opcode.mnemonic == "ldc2_w"


def test_operand_access():
    insn = RawInstruction(Opcode.INVOKEINTERFACE, method_index=12, count=2)
    assert insn.method_index == 12
    assert insn.count == 2
    assert dict(insn.operands) == {"method_index": 12, "count": 2}


def test_missing_operand():
    with pytest.raises(TypeError):
        RawInstruction(Opcode.ILOAD)


def test_unexpected_operand():
    with pytest.raises(TypeError):
        RawInstruction(Opcode.NOP, index=1)


@pytest.mark.parametrize(
    "opcode, operands",
    [
        (Opcode.ILOAD, {"index": 256}),
        (Opcode.IINC, {"index": 1, "constant": 128}),
        (Opcode.IFEQ, {"offset": 32768}),
        (Opcode.SIPUSH, {"value": -1}),
        (Opcode.GOTO_W, {"offset": 2**31}),
    ],
)
def test_operand_out_of_range(opcode, operands):
    with pytest.raises(ValueError):
        RawInstruction(opcode, **operands)


def test_operand_type_checked():
    with pytest.raises(TypeError):
        RawInstruction(Opcode.BIPUSH, value="1")


def test_negative_branch_offset():
    assert RawInstruction(Opcode.GOTO, offset=-4).offset == -4


def test_table_switch_lists_become_tuples():
    insn = RawInstruction(Opcode.TABLESWITCH, default=20, low=0, high=1, jump_offsets=[8, 12])
    assert insn.jump_offsets == (8, 12)
    same = RawInstruction(Opcode.TABLESWITCH, default=20, low=0, high=1, jump_offsets=(8, 12))
    assert insn == same
    assert hash(insn) == hash(same)


def test_lookup_switch_pairs():
    insn = RawInstruction(Opcode.LOOKUPSWITCH, default=4, match_offsets=[[1, 10], (5, 20)])
    assert insn.match_offsets == ((1, 10), (5, 20))


def test_equality():
    assert RawInstruction(Opcode.ALOAD, index=1) == RawInstruction(Opcode.ALOAD, index=1)
    assert not RawInstruction(Opcode.ALOAD, index=1) == RawInstruction(Opcode.ALOAD, index=2)
    assert not RawInstruction(Opcode.ALOAD, index=1) == RawInstruction(Opcode.ILOAD, index=1)


def test_immutable():
    insn = RawInstruction(Opcode.ALOAD, index=1)
    with pytest.raises(AttributeError):
        insn.index = 3
    assert insn.index == 1
    assert insn == RawInstruction(Opcode.ALOAD, index=1)


def test_missing_attribute():
    with pytest.raises(AttributeError):
        RawInstruction(Opcode.NOP).index


def test_repr():
    assert repr(RawInstruction(Opcode.ILOAD, index=3)) == "RawInstruction.ILOAD(index=3)"


def test_wide_instruction():
    wide = RawWideInstruction(Opcode.IINC, index=300, increment=-1000)
    insn = RawInstruction(Opcode.WIDE, instruction=wide)
    assert insn.opcode == 0xC4
    assert insn.instruction.opcode == 0x84
    assert insn.instruction.increment == -1000


def test_wide_from_int_opcode():
    assert RawWideInstruction(0xA9, index=70000 - 5000).opcode is Opcode.RET


def test_wide_requires_wide_instruction():
    with pytest.raises(TypeError):
        RawInstruction(Opcode.WIDE, instruction=RawInstruction(Opcode.NOP))


def test_wide_rejects_unwidenable_opcode():
    with pytest.raises(ValueError):
        RawWideInstruction(Opcode.NOP, index=1)


def test_wide_iinc_needs_increment():
    with pytest.raises(TypeError):
        RawWideInstruction(Opcode.IINC, index=1)


def test_wide_load_rejects_increment():
    with pytest.raises(TypeError):
        RawWideInstruction(Opcode.ILOAD, index=1, increment=2)


def test_wide_index_range():
    with pytest.raises(ValueError):
        RawWideInstruction(Opcode.ALOAD, index=0x10000)