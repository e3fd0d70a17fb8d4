"""The constant pool of a class file and its entries."""

from __future__ import annotations

import struct
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional

from mokapot.values import JavaString

__all__ = ["BadConstantPoolIndex", "ConstantPool", "Entry", "EntryKind"]


class EntryKind(IntEnum):
    """The kinds of constant pool entries, numbered by their tag."""

    UTF8 = 1
    INTEGER = 3
    FLOAT = 4
    LONG = 5
    DOUBLE = 6
    CLASS = 7
    STRING = 8
    FIELD_REF = 9
    METHOD_REF = 10
    INTERFACE_METHOD_REF = 11
    NAME_AND_TYPE = 12
    METHOD_HANDLE = 15
    METHOD_TYPE = 16
    DYNAMIC = 17
    INVOKE_DYNAMIC = 18
    MODULE = 19
    PACKAGE = 20

    @property
    def constant_kind(self) -> str:
        """The name of the kind as the specification spells it, e.g. ``CONSTANT_Utf8``."""
        return _CONSTANT_NAMES[self]

    @property
    def takes_two_slots(self) -> bool:
        """Whether an entry of this kind occupies two indices in the pool."""
        return self in (EntryKind.LONG, EntryKind.DOUBLE)


_CONSTANT_NAMES: Mapping[EntryKind, str] = MappingProxyType(
    {
        EntryKind.UTF8: "CONSTANT_Utf8",
        EntryKind.INTEGER: "CONSTANT_Integer",
        EntryKind.FLOAT: "CONSTANT_Float",
        EntryKind.LONG: "CONSTANT_Long",
        EntryKind.DOUBLE: "CONSTANT_Double",
        EntryKind.CLASS: "CONSTANT_Class",
        EntryKind.STRING: "CONSTANT_String",
        EntryKind.FIELD_REF: "CONSTANT_Fieldref",
        EntryKind.METHOD_REF: "CONSTANT_Methodref",
        EntryKind.INTERFACE_METHOD_REF: "CONSTANT_InterfaceMethodref",
        EntryKind.NAME_AND_TYPE: "CONSTANT_NameAndType",
        EntryKind.METHOD_HANDLE: "CONSTANT_MethodHandle",
        EntryKind.METHOD_TYPE: "CONSTANT_MethodType",
        EntryKind.DYNAMIC: "CONSTANT_Dynamic",
        EntryKind.INVOKE_DYNAMIC: "CONSTANT_InvokeDynamic",
        EntryKind.MODULE: "CONSTANT_Module",
        EntryKind.PACKAGE: "CONSTANT_Package",
    }
)


class _Field(Enum):
    U8 = (0, 0xFF)
    U16 = (0, 0xFFFF)
    I32 = (-(2**31), 2**31 - 1)
    I64 = (-(2**63), 2**63 - 1)
    F32 = "float"
    F64 = "double"
    TEXT = "text"


def _check_int(field: _Field, name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"field {name!r} must be an int, not {type(value).__name__}")
    low, high = field.value
    if not low <= value <= high:
        raise ValueError(f"field {name!r} out of range [{low}, {high}]: {value}")
    return value


def _check_real(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"field {name!r} must be a number, not {type(value).__name__}")
    return float(value)


def _coerce(field: _Field, name: str, value: Any) -> Any:
    if field is _Field.TEXT:
        return value if isinstance(value, JavaString) else JavaString(value)
    if field is _Field.F64:
        return _check_real(name, value)
    if field is _Field.F32:
        number = _check_real(name, value)
        try:
            return struct.unpack(">f", struct.pack(">f", number))[0]
        except OverflowError:
            raise ValueError(f"field {name!r} does not fit in a float: {number}") from None
    return _check_int(field, name, value)


_MEMBER_REF = {"class_index": _Field.U16, "name_and_type_index": _Field.U16}
_DYNAMIC = {"bootstrap_method_attr_index": _Field.U16, "name_and_type_index": _Field.U16}

_SCHEMA: Mapping[EntryKind, Mapping[str, _Field]] = MappingProxyType(
    {
        EntryKind.UTF8: {"value": _Field.TEXT},
        EntryKind.INTEGER: {"value": _Field.I32},
        EntryKind.FLOAT: {"value": _Field.F32},
        EntryKind.LONG: {"value": _Field.I64},
        EntryKind.DOUBLE: {"value": _Field.F64},
        EntryKind.CLASS: {"name_index": _Field.U16},
        EntryKind.STRING: {"string_index": _Field.U16},
        EntryKind.FIELD_REF: _MEMBER_REF,
        EntryKind.METHOD_REF: _MEMBER_REF,
        EntryKind.INTERFACE_METHOD_REF: _MEMBER_REF,
        EntryKind.NAME_AND_TYPE: {"name_index": _Field.U16, "descriptor_index": _Field.U16},
        EntryKind.METHOD_HANDLE: {"reference_kind": _Field.U8, "reference_index": _Field.U16},
        EntryKind.METHOD_TYPE: {"descriptor_index": _Field.U16},
        EntryKind.DYNAMIC: _DYNAMIC,
        EntryKind.INVOKE_DYNAMIC: _DYNAMIC,
        EntryKind.MODULE: {"name_index": _Field.U16},
        EntryKind.PACKAGE: {"name_index": _Field.U16},
    }
)


class Entry:
    """An entry in the constant pool: a kind and its named fields."""

    __slots__ = ("_kind", "_fields")

    def __init__(self, kind: int, /, **fields: Any) -> None:
        entry_kind = EntryKind(kind)
        schema = _SCHEMA[entry_kind]
        missing = schema.keys() - fields.keys()
        unexpected = fields.keys() - schema.keys()
        if missing or unexpected:
            raise TypeError(
                f"{entry_kind.constant_kind} expects fields {sorted(schema)}, got {sorted(fields)}"
            )
        values = {name: _coerce(field, name, fields[name]) for name, field in schema.items()}
        self._kind = entry_kind
        self._fields = MappingProxyType(values)

    @property
    def kind(self) -> EntryKind:
        """The kind of the entry."""
        return self._kind

    @property
    def fields(self) -> Mapping[str, Any]:
        """The fields of the entry, by name."""
        return self._fields

    @property
    def constant_kind(self) -> str:
        """The specification's name for the kind of this entry."""
        return self._kind.constant_kind

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._fields[name]
        except KeyError:
            raise AttributeError(f"{self._kind.constant_kind} has no field {name!r}") from None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return self._kind == other._kind and dict(self._fields) == dict(other._fields)

    def __hash__(self) -> int:
        return hash((self._kind, tuple(self._fields.items())))

    def __repr__(self) -> str:
        args = ", ".join(f"{name}={value!r}" for name, value in self._fields.items())
        return f"Entry.{self._kind.name}({args})"


class BadConstantPoolIndex(IndexError):
    """Raised when an index does not point to an entry of the constant pool."""

    def __init__(self, index: int) -> None:
        super().__init__(f"Bad constant pool index: {index}")
        self.index = index


class ConstantPool:
    """A constant pool, indexed from 1; long and double entries take two indices."""

    def __init__(self, entries: Iterable[Entry]) -> None:
        slots: List[Optional[Entry]] = [None]
        for entry in entries:
            if not isinstance(entry, Entry):
                raise TypeError(f"constant pool entries must be Entry, not {type(entry).__name__}")
            slots.append(entry)
            if entry.kind.takes_two_slots:
                slots.append(None)
        self._slots = slots

    def get_entry(self, index: int) -> Entry:
        """Return the entry at ``index``; raise BadConstantPoolIndex if there is none."""
        if isinstance(index, int) and not isinstance(index, bool) and 0 <= index < len(self._slots):
            entry = self._slots[index]
            if entry is not None:
                return entry
        raise BadConstantPoolIndex(index)

    def __len__(self) -> int:
        """The ``constant_pool_count``: the highest index plus one."""
        return len(self._slots)

    def __repr__(self) -> str:
        return f"ConstantPool(count={len(self._slots)})"