"""JVM instructions with their operands resolved against the constant pool."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from mokapot.pc import ProgramCounter
from mokapot.raw_instruction import Opcode
from mokapot.values import ConstantValue

__all__ = ["Instruction", "WideInstruction"]


class _Kind(Enum):
    U8 = (0, 0xFF)
    U16 = (0, 0xFFFF)
    I32 = (-0x8000_0000, 0x7FFF_FFFF)
    PC = "program counter"
    PC_LIST = "program counter list"
    MATCHES = "match targets"
    CONSTANT = "constant"
    TEXT = "text"
    ANY = "reference"
    WIDE = "wide"


def _check_int(kind: _Kind, name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"operand {name!r} must be an int, not {type(value).__name__}")
    low, high = kind.value
    if not low <= value <= high:
        raise ValueError(f"operand {name!r} out of range [{low}, {high}]: {value}")
    return value


def _pc(name: str, value: Any) -> ProgramCounter:
    if isinstance(value, ProgramCounter):
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"operand {name!r} must be a ProgramCounter")
    return ProgramCounter(value)


def _coerce(kind: _Kind, name: str, value: Any) -> Any:
    if kind is _Kind.PC:
        return _pc(name, value)
    if kind is _Kind.PC_LIST:
        return tuple(_pc(name, item) for item in value)
    if kind is _Kind.MATCHES:
        items = dict(value).items()
        checked = sorted((_check_int(_Kind.I32, name, key), _pc(name, pc)) for key, pc in items)
        return MappingProxyType(dict(checked))
    if kind is _Kind.CONSTANT:
        if not isinstance(value, ConstantValue):
            raise TypeError(f"operand {name!r} must be a ConstantValue")
        return value
    if kind is _Kind.TEXT:
        if not isinstance(value, str):
            raise TypeError(f"operand {name!r} must be a str")
        return value
    if kind is _Kind.ANY:
        if value is None:
            raise TypeError(f"operand {name!r} is required")
        return value
    if kind is _Kind.WIDE:
        if not isinstance(value, WideInstruction):
            raise TypeError(f"operand {name!r} must be a WideInstruction")
        return value
    return _check_int(kind, name, value)


def _schema() -> dict:
    schema: dict = {
        Opcode.BIPUSH: {"value": _Kind.U8},
        Opcode.SIPUSH: {"value": _Kind.U16},
        Opcode.IINC: {"index": _Kind.U8, "constant": _Kind.I32},
        Opcode.RET: {"index": _Kind.U8},
        Opcode.TABLESWITCH: {
            "low": _Kind.I32,
            "high": _Kind.I32,
            "jump_targets": _Kind.PC_LIST,
            "default": _Kind.PC,
        },
        Opcode.LOOKUPSWITCH: {"default": _Kind.PC, "match_targets": _Kind.MATCHES},
        Opcode.INVOKEINTERFACE: {"method": _Kind.ANY, "count": _Kind.U8},
        Opcode.INVOKEDYNAMIC: {
            "bootstrap_method_index": _Kind.U16,
            "method_name": _Kind.TEXT,
            "descriptor": _Kind.ANY,
        },
        Opcode.NEW: {"class_ref": _Kind.ANY},
        Opcode.NEWARRAY: {"element_type": _Kind.ANY},
        Opcode.ANEWARRAY: {"class_ref": _Kind.ANY},
        Opcode.WIDE: {"instruction": _Kind.WIDE},
        Opcode.MULTIANEWARRAY: {"array_type": _Kind.ANY, "dimensions": _Kind.U8},
    }
    schema.update(
        {op: {"constant": _Kind.CONSTANT} for op in (Opcode.LDC, Opcode.LDC_W, Opcode.LDC2_W)}
    )
    local_access = (
        Opcode.ILOAD, Opcode.LLOAD, Opcode.FLOAD, Opcode.DLOAD, Opcode.ALOAD,
        Opcode.ISTORE, Opcode.LSTORE, Opcode.FSTORE, Opcode.DSTORE, Opcode.ASTORE,
    )
    schema.update({op: {"index": _Kind.U8} for op in local_access})
    branches = [op for op in Opcode if Opcode.IFEQ <= op <= Opcode.JSR]
    branches += [Opcode.IFNULL, Opcode.IFNONNULL, Opcode.GOTO_W, Opcode.JSR_W]
    schema.update({op: {"target": _Kind.PC} for op in branches})
    field_access = (Opcode.GETSTATIC, Opcode.PUTSTATIC, Opcode.GETFIELD, Opcode.PUTFIELD)
    schema.update({op: {"field": _Kind.ANY} for op in field_access})
    invokes = (Opcode.INVOKEVIRTUAL, Opcode.INVOKESPECIAL, Opcode.INVOKESTATIC)
    schema.update({op: {"method": _Kind.ANY} for op in invokes})
    schema.update(
        {op: {"target_type": _Kind.ANY} for op in (Opcode.CHECKCAST, Opcode.INSTANCEOF)}
    )
    return schema


_OPERANDS: Mapping[Opcode, Mapping[str, _Kind]] = MappingProxyType(_schema())

_WIDENABLE = frozenset(
    {
        Opcode.ILOAD, Opcode.LLOAD, Opcode.FLOAD, Opcode.DLOAD, Opcode.ALOAD,
        Opcode.ISTORE, Opcode.LSTORE, Opcode.FSTORE, Opcode.DSTORE, Opcode.ASTORE,
        Opcode.RET, Opcode.IINC,
    }
)


@dataclass(frozen=True)
class WideInstruction:
    """The instruction modified by a ``wide`` prefix, with a 16-bit local index."""

    opcode: Opcode
    index: int
    increment: Optional[int] = None

    def __post_init__(self) -> None:
        opcode = Opcode(self.opcode)
        if opcode not in _WIDENABLE:
            raise ValueError(f"{opcode.mnemonic} cannot be widened")
        object.__setattr__(self, "opcode", opcode)
        _check_int(_Kind.U16, "index", self.index)
        if opcode is Opcode.IINC:
            if self.increment is None:
                raise TypeError("wide iinc requires an increment")
            _check_int(_Kind.I32, "increment", self.increment)
        elif self.increment is not None:
            raise TypeError(f"wide {opcode.mnemonic} takes no increment")

    @property
    def name(self) -> str:
        """The mnemonic of the widened instruction."""
        return self.opcode.mnemonic


def _hashable(value: Any) -> Any:
    if isinstance(value, Mapping):
        return tuple(value.items())
    return value


class Instruction:
    """An instruction whose operands are resolved constants, references and targets."""

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
    def name(self) -> str:
        """The mnemonic of the instruction, e.g. ``aload_0``."""
        return self._opcode.mnemonic

    @property
    def operands(self) -> Mapping[str, Any]:
        """The operands, by name."""
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
        if not isinstance(other, Instruction):
            return NotImplemented
        return self._opcode == other._opcode and dict(self._operands) == dict(other._operands)

    def __hash__(self) -> int:
        items = tuple((name, _hashable(value)) for name, value in self._operands.items())
        return hash((self._opcode, items))

    def __repr__(self) -> str:
        args = ", ".join(f"{name}={value!r}" for name, value in self._operands.items())
        return f"Instruction.{self._opcode.name}({args})"