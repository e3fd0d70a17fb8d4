"""JVM instructions as they appear in bytecode, before constant-pool resolution."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Any, Mapping, Optional

__all__ = ["Opcode", "RawInstruction", "RawWideInstruction"]


class Opcode(IntEnum):
    """The opcodes of the JVM instruction set."""

    NOP = 0x00
    ACONST_NULL = 0x01
    ICONST_M1 = 0x02
    ICONST_0 = 0x03
    ICONST_1 = 0x04
    ICONST_2 = 0x05
    ICONST_3 = 0x06
    ICONST_4 = 0x07
    ICONST_5 = 0x08
    LCONST_0 = 0x09
    LCONST_1 = 0x0A
    FCONST_0 = 0x0B
    FCONST_1 = 0x0C
    FCONST_2 = 0x0D
    DCONST_0 = 0x0E
    DCONST_1 = 0x0F
    BIPUSH = 0x10
    SIPUSH = 0x11
    LDC = 0x12
    LDC_W = 0x13
    LDC2_W = 0x14
    ILOAD = 0x15
    LLOAD = 0x16
    FLOAD = 0x17
    DLOAD = 0x18
    ALOAD = 0x19
    ILOAD_0 = 0x1A
    ILOAD_1 = 0x1B
    ILOAD_2 = 0x1C
    ILOAD_3 = 0x1D
    LLOAD_0 = 0x1E
    LLOAD_1 = 0x1F
    LLOAD_2 = 0x20
    LLOAD_3 = 0x21
    FLOAD_0 = 0x22
    FLOAD_1 = 0x23
    FLOAD_2 = 0x24
    FLOAD_3 = 0x25
    DLOAD_0 = 0x26
    DLOAD_1 = 0x27
    DLOAD_2 = 0x28
    DLOAD_3 = 0x29
    ALOAD_0 = 0x2A
    ALOAD_1 = 0x2B
    ALOAD_2 = 0x2C
    ALOAD_3 = 0x2D
    IALOAD = 0x2E
    LALOAD = 0x2F
    FALOAD = 0x30
    DALOAD = 0x31
    AALOAD = 0x32
    BALOAD = 0x33
    CALOAD = 0x34
    SALOAD = 0x35
    ISTORE = 0x36
    LSTORE = 0x37
    FSTORE = 0x38
    DSTORE = 0x39
    ASTORE = 0x3A
    ISTORE_0 = 0x3B
    ISTORE_1 = 0x3C
    ISTORE_2 = 0x3D
    ISTORE_3 = 0x3E
    LSTORE_0 = 0x3F
    LSTORE_1 = 0x40
    LSTORE_2 = 0x41
    LSTORE_3 = 0x42
    FSTORE_0 = 0x43
    FSTORE_1 = 0x44
    FSTORE_2 = 0x45
    FSTORE_3 = 0x46
    DSTORE_0 = 0x47
    DSTORE_1 = 0x48
    DSTORE_2 = 0x49
    DSTORE_3 = 0x4A
    ASTORE_0 = 0x4B
    ASTORE_1 = 0x4C
    ASTORE_2 = 0x4D
    ASTORE_3 = 0x4E
    IASTORE = 0x4F
    LASTORE = 0x50
    FASTORE = 0x51
    DASTORE = 0x52
    AASTORE = 0x53
    BASTORE = 0x54
    CASTORE = 0x55
    SASTORE = 0x56
    POP = 0x57
    POP2 = 0x58
    DUP = 0x59
    DUP_X1 = 0x5A
    DUP_X2 = 0x5B
    DUP2 = 0x5C
    DUP2_X1 = 0x5D
    DUP2_X2 = 0x5E
    SWAP = 0x5F
    IADD = 0x60
    LADD = 0x61
    FADD = 0x62
    DADD = 0x63
    ISUB = 0x64
    LSUB = 0x65
    FSUB = 0x66
    DSUB = 0x67
    IMUL = 0x68
    LMUL = 0x69
    FMUL = 0x6A
    DMUL = 0x6B
    IDIV = 0x6C
    LDIV = 0x6D
    FDIV = 0x6E
    DDIV = 0x6F
    IREM = 0x70
    LREM = 0x71
    FREM = 0x72
    DREM = 0x73
    INEG = 0x74
    LNEG = 0x75
    FNEG = 0x76
    DNEG = 0x77
    ISHL = 0x78
    LSHL = 0x79
    ISHR = 0x7A
    LSHR = 0x7B
    IUSHR = 0x7C
    LUSHR = 0x7D
    IAND = 0x7E
    LAND = 0x7F
    IOR = 0x80
    LOR = 0x81
    IXOR = 0x82
    LXOR = 0x83
    IINC = 0x84
    I2L = 0x85
    I2F = 0x86
    I2D = 0x87
    L2I = 0x88
    L2F = 0x89
    L2D = 0x8A
    F2I = 0x8B
    F2L = 0x8C
    F2D = 0x8D
    D2I = 0x8E
    D2L = 0x8F
    D2F = 0x90
    I2B = 0x91
    I2C = 0x92
    I2S = 0x93
    LCMP = 0x94
    FCMPL = 0x95
    FCMPG = 0x96
    DCMPL = 0x97
    DCMPG = 0x98
    IFEQ = 0x99
    IFNE = 0x9A
    IFLT = 0x9B
    IFGE = 0x9C
    IFGT = 0x9D
    IFLE = 0x9E
    IF_ICMPEQ = 0x9F
    IF_ICMPNE = 0xA0
    IF_ICMPLT = 0xA1
    IF_ICMPGE = 0xA2
    IF_ICMPGT = 0xA3
    IF_ICMPLE = 0xA4
    IF_ACMPEQ = 0xA5
    IF_ACMPNE = 0xA6
    GOTO = 0xA7
    JSR = 0xA8
    RET = 0xA9
    TABLESWITCH = 0xAA
    LOOKUPSWITCH = 0xAB
    IRETURN = 0xAC
    LRETURN = 0xAD
    FRETURN = 0xAE
    DRETURN = 0xAF
    ARETURN = 0xB0
    RETURN = 0xB1
    GETSTATIC = 0xB2
    PUTSTATIC = 0xB3
    GETFIELD = 0xB4
    PUTFIELD = 0xB5
    INVOKEVIRTUAL = 0xB6
    INVOKESPECIAL = 0xB7
    INVOKESTATIC = 0xB8
    INVOKEINTERFACE = 0xB9
    INVOKEDYNAMIC = 0xBA
    NEW = 0xBB
    NEWARRAY = 0xBC
    ANEWARRAY = 0xBD
    ARRAYLENGTH = 0xBE
    ATHROW = 0xBF
    CHECKCAST = 0xC0
    INSTANCEOF = 0xC1
    MONITORENTER = 0xC2
    MONITOREXIT = 0xC3
    WIDE = 0xC4
    MULTIANEWARRAY = 0xC5
    IFNULL = 0xC6
    IFNONNULL = 0xC7
    GOTO_W = 0xC8
    JSR_W = 0xC9
    BREAKPOINT = 0xCA
    IMPDEP1 = 0xFE
    IMPDEP2 = 0xFF

    @property
    def mnemonic(self) -> str:
        """The lower-case mnemonic of the opcode."""
        return self.name.lower()


class _Kind(Enum):
    U8 = (0, 0xFF)
    I8 = (-0x80, 0x7F)
    U16 = (0, 0xFFFF)
    I16 = (-0x8000, 0x7FFF)
    I32 = (-0x8000_0000, 0x7FFF_FFFF)
    I32_LIST = "i32 list"
    I32_PAIR_LIST = "i32 pair list"
    WIDE = "wide"


def _check_int(kind: _Kind, name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"operand {name!r} must be an int, not {type(value).__name__}")
    low, high = kind.value
    if not low <= value <= high:
        raise ValueError(f"operand {name!r} out of range [{low}, {high}]: {value}")
    return value


def _coerce(kind: _Kind, name: str, value: Any) -> Any:
    if kind is _Kind.I32_LIST:
        return tuple(_check_int(_Kind.I32, name, item) for item in value)
    if kind is _Kind.I32_PAIR_LIST:
        pairs = []
        for pair in value:
            key, target = pair
            pairs.append((_check_int(_Kind.I32, name, key), _check_int(_Kind.I32, name, target)))
        return tuple(pairs)
    if kind is _Kind.WIDE:
        if not isinstance(value, RawWideInstruction):
            raise TypeError(f"operand {name!r} must be a RawWideInstruction")
        return value
    return _check_int(kind, name, value)


def _schema() -> dict:
    schema: dict = {
        Opcode.BIPUSH: {"value": _Kind.U8},
        Opcode.SIPUSH: {"value": _Kind.U16},
        Opcode.LDC: {"const_index": _Kind.U8},
        Opcode.LDC_W: {"const_index": _Kind.U16},
        Opcode.LDC2_W: {"const_index": _Kind.U16},
        Opcode.IINC: {"index": _Kind.U8, "constant": _Kind.I8},
        Opcode.RET: {"index": _Kind.U8},
        Opcode.TABLESWITCH: {
            "default": _Kind.I32,
            "low": _Kind.I32,
            "high": _Kind.I32,
            "jump_offsets": _Kind.I32_LIST,
        },
        Opcode.LOOKUPSWITCH: {"default": _Kind.I32, "match_offsets": _Kind.I32_PAIR_LIST},
        Opcode.INVOKEINTERFACE: {"method_index": _Kind.U16, "count": _Kind.U8},
        Opcode.INVOKEDYNAMIC: {"dynamic_index": _Kind.U16},
        Opcode.NEW: {"index": _Kind.U16},
        Opcode.NEWARRAY: {"atype": _Kind.U8},
        Opcode.ANEWARRAY: {"index": _Kind.U16},
        Opcode.WIDE: {"instruction": _Kind.WIDE},
        Opcode.MULTIANEWARRAY: {"index": _Kind.U16, "dimensions": _Kind.U8},
        Opcode.GOTO_W: {"offset": _Kind.I32},
        Opcode.JSR_W: {"offset": _Kind.I32},
    }
    local_access = (
        Opcode.ILOAD, Opcode.LLOAD, Opcode.FLOAD, Opcode.DLOAD, Opcode.ALOAD,
        Opcode.ISTORE, Opcode.LSTORE, Opcode.FSTORE, Opcode.DSTORE, Opcode.ASTORE,
    )
    schema.update({op: {"index": _Kind.U8} for op in local_access})
    branches = [op for op in Opcode if Opcode.IFEQ <= op <= Opcode.JSR]
    branches += [Opcode.IFNULL, Opcode.IFNONNULL]
    schema.update({op: {"offset": _Kind.I16} for op in branches})
    field_access = (Opcode.GETSTATIC, Opcode.PUTSTATIC, Opcode.GETFIELD, Opcode.PUTFIELD)
    schema.update({op: {"field_ref_index": _Kind.U16} for op in field_access})
    invokes = (Opcode.INVOKEVIRTUAL, Opcode.INVOKESPECIAL, Opcode.INVOKESTATIC)
    schema.update({op: {"method_index": _Kind.U16} for op in invokes})
    schema.update(
        {op: {"target_type_index": _Kind.U16} for op in (Opcode.CHECKCAST, Opcode.INSTANCEOF)}
    )
    return schema


_OPERANDS: Mapping[Opcode, Mapping[str, _Kind]] = MappingProxyType(_schema())

_WIDE_OPCODES = frozenset(
    {
        Opcode.ILOAD, Opcode.LLOAD, Opcode.FLOAD, Opcode.DLOAD, Opcode.ALOAD,
        Opcode.ISTORE, Opcode.LSTORE, Opcode.FSTORE, Opcode.DSTORE, Opcode.ASTORE,
        Opcode.RET, Opcode.IINC,
    }
)


@dataclass(frozen=True)
class RawWideInstruction:
    """The instruction modified by a ``wide`` prefix."""

    opcode: Opcode
    index: int
    increment: Optional[int] = None

    def __post_init__(self) -> None:
        opcode = Opcode(self.opcode)
        if opcode not in _WIDE_OPCODES:
            raise ValueError(f"{opcode.mnemonic} cannot be widened")
        object.__setattr__(self, "opcode", opcode)
        _check_int(_Kind.U16, "index", self.index)
        if opcode is Opcode.IINC:
            if self.increment is None:
                raise TypeError("wide iinc requires an increment")
            _check_int(_Kind.I16, "increment", self.increment)
        elif self.increment is not None:
            raise TypeError(f"wide {opcode.mnemonic} takes no increment")


class RawInstruction:
    """An instruction with its operands as encoded, e.g. constant-pool indices."""

    __slots__ = ("_opcode", "_operands")

    def __init__(self, opcode: int, /, **operands: Any) -> None:
        op = Opcode(opcode)
        schema = _OPERANDS.get(op, {})
        missing = schema.keys() - operands.keys()
        unexpected = operands.keys() - schema.keys()
        if missing or unexpected:
            raise TypeError(
                f"{op.mnemonic} expects operands {sorted(schema)}, got {sorted(operands)}"
            )
        values = {name: _coerce(kind, name, operands[name]) for name, kind in schema.items()}
        self._opcode = op
        self._operands = MappingProxyType(values)

    @property
    def opcode(self) -> Opcode:
        """The opcode of the instruction."""
        return self._opcode

    @property
    def operands(self) -> Mapping[str, Any]:
        """The operands, by name, in encoding order."""
        return self._operands

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._operands[name]
        except KeyError:
            raise AttributeError(
                f"{self._opcode.mnemonic} has no operand {name!r}"
            ) from None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RawInstruction):
            return NotImplemented
        return self._opcode == other._opcode and dict(self._operands) == dict(other._operands)

    def __hash__(self) -> int:
        return hash((self._opcode, tuple(self._operands.items())))

    def __repr__(self) -> str:
        args = ", ".join(f"{name}={value!r}" for name, value in self._operands.items())
        return f"RawInstruction.{self._opcode.name}({args})"