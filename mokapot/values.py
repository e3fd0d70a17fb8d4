"""Compile-time constant values: strings, numbers, class literals and method handles."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from decimal import Decimal
from enum import IntEnum
from functools import total_ordering
from typing import Any, Union

__all__ = [
    "ConstantKind",
    "ConstantValue",
    "JavaString",
    "MethodHandle",
    "MethodHandleKind",
]

_I32 = (-(2**31), 2**31 - 1)
_I64 = (-(2**63), 2**63 - 1)
_U16 = (0, 0xFFFF)


def _check_range(value: Any, bounds: tuple, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{what} must be an int, not {type(value).__name__}")
    low, high = bounds
    if not low <= value <= high:
        raise ValueError(f"{what} out of range [{low}, {high}]: {value}")
    return value


def _check_real(value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{what} must be a number, not {type(value).__name__}")
    return float(value)


def _to_f32(value: float) -> float:
    try:
        return struct.unpack(">f", struct.pack(">f", value))[0]
    except OverflowError:
        raise ValueError(f"value does not fit in a float: {value}") from None


def _format_float(value: float, single: bool) -> str:
    """Format like a plain decimal: shortest round-trip digits, no exponent."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if single:
        text = repr(value)
        for digits in range(1, 10):
            candidate = f"{value:.{digits}g}"
            if _to_f32(float(candidate)) == value:
                text = candidate
                break
    else:
        text = repr(value)
    out = format(Decimal(text), "f")
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    return out


def _cmp(lhs: Any, rhs: Any) -> int:
    if lhs < rhs:
        return -1
    if rhs < lhs:
        return 1
    return 0


@total_ordering
@dataclass(frozen=True)
class JavaString:
    """A string in bytecode: valid UTF-8 text (``str``) or raw undecodable bytes."""

    value: Union[str, bytes]

    def __post_init__(self) -> None:
        if isinstance(self.value, (bytearray, memoryview)):
            object.__setattr__(self, "value", bytes(self.value))
        elif not isinstance(self.value, (str, bytes)):
            raise TypeError(f"JavaString holds str or bytes, not {type(self.value).__name__}")

    @property
    def is_valid_utf8(self) -> bool:
        """Whether the string is valid UTF-8 text."""
        return isinstance(self.value, str)

    def _key(self) -> tuple:
        return (0 if isinstance(self.value, str) else 1, self.value)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, JavaString):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self) -> str:
        if isinstance(self.value, str):
            return f'String("{self.value}")'
        hex_bytes = " ".join(f"0x{byte:02X}" for byte in self.value)
        return f"String({hex_bytes}) // Invalid UTF-8"


class MethodHandleKind(IntEnum):
    """The kind of a method handle, numbered as its ``reference_kind``."""

    REF_GET_FIELD = 1
    REF_GET_STATIC = 2
    REF_PUT_FIELD = 3
    REF_PUT_STATIC = 4
    REF_INVOKE_VIRTUAL = 5
    REF_INVOKE_STATIC = 6
    REF_INVOKE_SPECIAL = 7
    REF_NEW_INVOKE_SPECIAL = 8
    REF_INVOKE_INTERFACE = 9

    @property
    def is_field_access(self) -> bool:
        """Whether the handle refers to a field rather than a method."""
        return self <= MethodHandleKind.REF_PUT_STATIC


@dataclass(frozen=True, order=True, repr=False)
class MethodHandle:
    """A method handle: a kind and the field or method it refers to."""

    kind: MethodHandleKind
    reference: Any

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", MethodHandleKind(self.kind))
        if self.reference is None:
            raise TypeError("a method handle needs a reference")

    def __repr__(self) -> str:
        return f"MethodHandle.{self.kind.name}({self.reference!r})"


class ConstantKind(IntEnum):
    """The kinds of constant values, in their sort order."""

    NULL = 0
    INTEGER = 1
    FLOAT = 2
    LONG = 3
    DOUBLE = 4
    STRING = 5
    CLASS = 6
    HANDLE = 7
    METHOD_TYPE = 8
    DYNAMIC = 9


_FLOATING = (ConstantKind.FLOAT, ConstantKind.DOUBLE)


def _normalise(kind: ConstantKind, value: Any) -> Any:
    if kind is ConstantKind.NULL:
        if value is not None:
            raise TypeError("null carries no value")
        return None
    if kind is ConstantKind.INTEGER:
        return _check_range(value, _I32, "int constant")
    if kind is ConstantKind.LONG:
        return _check_range(value, _I64, "long constant")
    if kind is ConstantKind.FLOAT:
        return _to_f32(_check_real(value, "float constant"))
    if kind is ConstantKind.DOUBLE:
        return _check_real(value, "double constant")
    if kind is ConstantKind.STRING:
        return value if isinstance(value, JavaString) else JavaString(value)
    if kind is ConstantKind.HANDLE:
        if not isinstance(value, MethodHandle):
            raise TypeError("a handle constant holds a MethodHandle")
        return value
    if kind is ConstantKind.DYNAMIC:
        try:
            index, name, field_type = value
        except (TypeError, ValueError):
            raise TypeError(
                "a dynamic constant holds (bootstrap_method_index, name, field_type)"
            ) from None
        _check_range(index, _U16, "bootstrap method index")
        if not isinstance(name, str):
            raise TypeError("the name of a dynamic constant must be a str")
        return (index, name, field_type)
    if value is None:
        raise TypeError(f"a {kind.name.lower()} constant needs a value")
    return value


@dataclass(frozen=True, eq=False)
class ConstantValue:
    """A compile-time constant; NaNs of the same kind compare equal."""

    kind: ConstantKind
    value: Any = None

    def __post_init__(self) -> None:
        kind = ConstantKind(self.kind)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "value", _normalise(kind, self.value))

    @classmethod
    def null(cls) -> ConstantValue:
        """The ``null`` value."""
        return cls(ConstantKind.NULL)

    @classmethod
    def integer(cls, value: int) -> ConstantValue:
        """An ``int`` constant."""
        return cls(ConstantKind.INTEGER, value)

    @classmethod
    def float32(cls, value: float) -> ConstantValue:
        """A ``float`` constant, rounded to single precision."""
        return cls(ConstantKind.FLOAT, value)

    @classmethod
    def long(cls, value: int) -> ConstantValue:
        """A ``long`` constant."""
        return cls(ConstantKind.LONG, value)

    @classmethod
    def double(cls, value: float) -> ConstantValue:
        """A ``double`` constant."""
        return cls(ConstantKind.DOUBLE, value)

    @classmethod
    def string(cls, value: Union[str, bytes, JavaString]) -> ConstantValue:
        """A string literal."""
        return cls(ConstantKind.STRING, value)

    @classmethod
    def class_ref(cls, class_ref: Any) -> ConstantValue:
        """A class literal."""
        return cls(ConstantKind.CLASS, class_ref)

    @classmethod
    def handle(cls, method_handle: MethodHandle) -> ConstantValue:
        """A method handle constant."""
        return cls(ConstantKind.HANDLE, method_handle)

    @classmethod
    def method_type(cls, descriptor: Any) -> ConstantValue:
        """A method type constant."""
        return cls(ConstantKind.METHOD_TYPE, descriptor)

    @classmethod
    def dynamic(cls, bootstrap_method_index: int, name: str, field_type: Any) -> ConstantValue:
        """A dynamically computed constant."""
        return cls(ConstantKind.DYNAMIC, (bootstrap_method_index, name, field_type))

    def _is_nan(self) -> bool:
        return self.kind in _FLOATING and math.isnan(self.value)

    def __str__(self) -> str:
        kind, value = self.kind, self.value
        if kind is ConstantKind.NULL:
            return "null"
        if kind is ConstantKind.INTEGER:
            return f"int({value})"
        if kind is ConstantKind.FLOAT:
            return f"float({_format_float(value, single=True)})"
        if kind is ConstantKind.LONG:
            return f"long({value})"
        if kind is ConstantKind.DOUBLE:
            return f"double({_format_float(value, single=False)})"
        if kind is ConstantKind.STRING:
            return str(value)
        if kind is ConstantKind.CLASS:
            return f"{value}.class"
        if kind is ConstantKind.DYNAMIC:
            index, name, field_type = value
            return f"Dynamic({index}, {name}, {field_type})"
        return repr(value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConstantValue):
            return NotImplemented
        if self.kind is not other.kind:
            return False
        if self._is_nan() and other._is_nan():
            return True
        return self.value == other.value

    def __hash__(self) -> int:
        if self._is_nan():
            return hash((self.kind, "NaN"))
        return hash((self.kind, self.value))

    def _compare(self, other: ConstantValue) -> int:
        if self.kind is not other.kind:
            return -1 if self.kind < other.kind else 1
        if self.kind is ConstantKind.NULL:
            return 0
        if self.kind is ConstantKind.DYNAMIC:
            for lhs, rhs in zip(self.value, other.value):
                result = _cmp(lhs, rhs)
                if result:
                    return result
            return 0
        return _cmp(self.value, other.value)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ConstantValue):
            return NotImplemented
        return self._compare(other) < 0

    def __le__(self, other: object) -> bool:
        if not isinstance(other, ConstantValue):
            return NotImplemented
        return self._compare(other) <= 0

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, ConstantValue):
            return NotImplemented
        return self._compare(other) > 0

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, ConstantValue):
            return NotImplemented
        return self._compare(other) >= 0