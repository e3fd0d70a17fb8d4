"""Method bodies: instructions, exception handlers and debugging tables."""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import (
    Any,
    Dict,
    Generic,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

from mokapot.pc import ProgramCounter

__all__ = [
    "ExceptionTableEntry",
    "InstructionList",
    "LineNumberTableEntry",
    "LocalVariableId",
    "LocalVariableTable",
    "LocalVariableTableEntry",
    "MalformedError",
    "MethodBody",
    "StackMapFrame",
    "StackMapFrameKind",
    "VerificationKind",
    "VerificationType",
]

I = TypeVar("I")
PcLike = Union[ProgramCounter, int]


class MalformedError(ValueError):
    """Raised when the contents of a class file are inconsistent."""


def _pc(value: PcLike) -> ProgramCounter:
    return value if isinstance(value, ProgramCounter) else ProgramCounter(value)


class InstructionList(Generic[I]):
    """Instructions keyed by program counter, kept in ascending order."""

    def __init__(self, items: Union[Mapping[PcLike, I], Iterable[Tuple[PcLike, I]]] = ()) -> None:
        pairs = items.items() if isinstance(items, Mapping) else items
        table: Dict[ProgramCounter, I] = {}
        for pc, instruction in pairs:
            table[_pc(pc)] = instruction
        self._table = dict(sorted(table.items()))
        self._pcs: List[ProgramCounter] = list(self._table)

    def get(self, pc: PcLike) -> Optional[I]:
        """The instruction at ``pc``, or None."""
        return self._table.get(_pc(pc))

    def entry_point(self) -> Optional[Tuple[ProgramCounter, I]]:
        """The first instruction with its counter, or None if the list is empty."""
        if not self._pcs:
            return None
        first = self._pcs[0]
        return first, self._table[first]

    def last_instruction(self) -> Optional[Tuple[ProgramCounter, I]]:
        """The last instruction with its counter, or None if the list is empty."""
        if not self._pcs:
            return None
        last = self._pcs[-1]
        return last, self._table[last]

    def next_pc_of(self, pc: PcLike) -> Optional[ProgramCounter]:
        """The counter of the first instruction after ``pc``."""
        position = bisect_right(self._pcs, _pc(pc))
        return self._pcs[position] if position < len(self._pcs) else None

    def prev_pc_of(self, pc: PcLike) -> Optional[ProgramCounter]:
        """The counter of the last instruction before ``pc``."""
        position = bisect_left(self._pcs, _pc(pc))
        return self._pcs[position - 1] if position > 0 else None

    def __len__(self) -> int:
        return len(self._pcs)

    def __iter__(self) -> Iterator[Tuple[ProgramCounter, I]]:
        return iter(self._table.items())

    def __contains__(self, pc: object) -> bool:
        if isinstance(pc, ProgramCounter):
            return pc in self._table
        if isinstance(pc, int) and not isinstance(pc, bool) and 0 <= pc <= 0xFFFF:
            return ProgramCounter(pc) in self._table
        return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InstructionList):
            return NotImplemented
        return self._table == other._table

    def __str__(self) -> str:
        return "\n".join(f"{pc}: {instruction}" for pc, instruction in self)

    def __repr__(self) -> str:
        return f"InstructionList({list(self._table.items())!r})"


@dataclass
class ExceptionTableEntry:
    """A handler covering the counters from ``start_pc`` to ``end_pc``, both inclusive."""

    start_pc: ProgramCounter
    end_pc: ProgramCounter
    handler_pc: ProgramCounter
    catch_type: Optional[Any] = None

    def __post_init__(self) -> None:
        self.start_pc = _pc(self.start_pc)
        self.end_pc = _pc(self.end_pc)
        self.handler_pc = _pc(self.handler_pc)

    def covers(self, pc: PcLike) -> bool:
        """Whether the handler is active at ``pc``."""
        return self.start_pc <= _pc(pc) <= self.end_pc


@dataclass
class LineNumberTableEntry:
    """The source line that starts at ``start_pc``."""

    start_pc: ProgramCounter
    line_number: int

    def __post_init__(self) -> None:
        self.start_pc = _pc(self.start_pc)


@dataclass(frozen=True)
class LocalVariableId:
    """A local variable slot, valid from ``start_pc`` up to but excluding ``end_pc``."""

    start_pc: ProgramCounter
    end_pc: ProgramCounter
    index: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_pc", _pc(self.start_pc))
        object.__setattr__(self, "end_pc", _pc(self.end_pc))

    @property
    def effective_range(self) -> range:
        """The counters at which the variable is valid."""
        return range(self.start_pc.value, self.end_pc.value)


@dataclass
class LocalVariableTableEntry:
    """What is known about a local variable."""

    name: Optional[str] = None
    var_type: Optional[Any] = None
    signature: Optional[str] = None


class LocalVariableTable:
    """Local variables merged from the type and generic-signature tables."""

    def __init__(self) -> None:
        self._entries: Dict[LocalVariableId, LocalVariableTableEntry] = {}

    def _entry_named(self, key: LocalVariableId, name: str) -> LocalVariableTableEntry:
        entry = self._entries.setdefault(key, LocalVariableTableEntry())
        if entry.name is not None and entry.name != name:
            raise MalformedError("Name of local variable does not match")
        entry.name = name
        return entry

    def merge_type(self, key: LocalVariableId, name: str, field_type: Any) -> None:
        """Record the type of a variable; raise MalformedError if its name disagrees."""
        self._entry_named(key, name).var_type = field_type

    def merge_signature(self, key: LocalVariableId, name: str, signature: str) -> None:
        """Record the generic signature of a variable; raise MalformedError if its name disagrees."""
        self._entry_named(key, name).signature = signature

    def get(self, key: LocalVariableId) -> Optional[LocalVariableTableEntry]:
        """The entry for ``key``, or None."""
        return self._entries.get(key)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Tuple[LocalVariableId, LocalVariableTableEntry]]:
        return iter(self._entries.items())


class VerificationKind(IntEnum):
    """The verification types of the stack map table, numbered by their tag."""

    TOP = 0
    INTEGER = 1
    FLOAT = 2
    DOUBLE = 3
    LONG = 4
    NULL = 5
    UNINITIALIZED_THIS = 6
    OBJECT = 7
    UNINITIALIZED = 8


@dataclass(frozen=True)
class VerificationType:
    """A verification type; objects carry a class, uninitialized values the ``new`` site."""

    kind: VerificationKind
    class_ref: Optional[Any] = None
    offset: Optional[ProgramCounter] = None

    def __post_init__(self) -> None:
        kind = VerificationKind(self.kind)
        object.__setattr__(self, "kind", kind)
        if kind is VerificationKind.OBJECT:
            if self.class_ref is None:
                raise TypeError("an object verification type needs a class")
        elif self.class_ref is not None:
            raise TypeError(f"{kind.name.lower()} carries no class")
        if kind is VerificationKind.UNINITIALIZED:
            if self.offset is None:
                raise TypeError("an uninitialized verification type needs an offset")
            object.__setattr__(self, "offset", _pc(self.offset))
        elif self.offset is not None:
            raise TypeError(f"{kind.name.lower()} carries no offset")


class StackMapFrameKind(Enum):
    """The shapes of stack map frames."""

    SAME = "same_frame"
    SAME_LOCALS_1_STACK_ITEM = "same_locals_1_stack_item_frame"
    CHOP = "chop_frame"
    APPEND = "append_frame"
    FULL = "full_frame"


@dataclass(frozen=True)
class StackMapFrame:
    """A stack map frame; which fields it carries depends on its kind."""

    kind: StackMapFrameKind
    offset_delta: int
    chop_count: Optional[int] = None
    locals: Tuple[VerificationType, ...] = ()
    stack: Tuple[VerificationType, ...] = ()

    def __post_init__(self) -> None:
        kind = StackMapFrameKind(self.kind)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "locals", tuple(self.locals))
        object.__setattr__(self, "stack", tuple(self.stack))
        if isinstance(self.offset_delta, bool) or not isinstance(self.offset_delta, int):
            raise TypeError("offset_delta must be an int")
        if not 0 <= self.offset_delta <= 0xFFFF:
            raise ValueError(f"offset_delta out of range: {self.offset_delta}")
        if kind is StackMapFrameKind.CHOP:
            if isinstance(self.chop_count, bool) or not isinstance(self.chop_count, int):
                raise TypeError("a chop frame needs an int chop_count")
            if not 0 <= self.chop_count <= 0xFF:
                raise ValueError(f"chop_count out of range: {self.chop_count}")
        elif self.chop_count is not None:
            raise TypeError(f"{kind.value} carries no chop_count")
        takes_locals = kind in (StackMapFrameKind.APPEND, StackMapFrameKind.FULL)
        if self.locals and not takes_locals:
            raise TypeError(f"{kind.value} carries no locals")
        if kind is StackMapFrameKind.SAME_LOCALS_1_STACK_ITEM:
            if len(self.stack) != 1:
                raise TypeError(f"{kind.value} carries exactly one stack item")
        elif self.stack and kind is not StackMapFrameKind.FULL:
            raise TypeError(f"{kind.value} carries no stack")


@dataclass
class MethodBody:
    """The code of a method: instructions and the tables that describe them."""

    max_stack: int
    max_locals: int
    instructions: InstructionList
    exception_table: List[ExceptionTableEntry] = field(default_factory=list)
    line_number_table: Optional[List[LineNumberTableEntry]] = None
    local_variable_table: Optional[LocalVariableTable] = None
    stack_map_table: Optional[List[StackMapFrame]] = None
    runtime_visible_type_annotations: List[Any] = field(default_factory=list)
    runtime_invisible_type_annotations: List[Any] = field(default_factory=list)
    free_attributes: List[Tuple[str, bytes]] = field(default_factory=list)

    def instruction_at(self, pc: PcLike) -> Optional[Any]:
        """The instruction at ``pc``, or None."""
        return self.instructions.get(pc)