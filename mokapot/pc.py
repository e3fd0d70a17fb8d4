"""Program counters addressing instructions inside a method body."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

_MAX_PC = 0xFFFF


class InvalidOffset(ValueError):
    """Raised when offsetting a program counter leaves the valid range."""

    def __init__(self, message: str = "Invalid PC Offset") -> None:
        super().__init__(message)


@dataclass(frozen=True, order=True, repr=False)
class ProgramCounter:
    """A position in an instruction sequence, an unsigned 16-bit value."""

    value: int = 0

    ZERO: ClassVar[ProgramCounter]

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"program counter must be an int, not {type(self.value).__name__}")
        if not 0 <= self.value <= _MAX_PC:
            raise ValueError(f"program counter out of range: {self.value}")

    def __add__(self, offset: object) -> ProgramCounter:
        """Return the counter moved by ``offset``; raise InvalidOffset if out of range."""
        if isinstance(offset, bool) or not isinstance(offset, int):
            return NotImplemented
        target = self.value + offset
        if not 0 <= target <= _MAX_PC:
            raise InvalidOffset()
        return ProgramCounter(target)

    def __int__(self) -> int:
        return self.value

    def is_entry_point(self) -> bool:
        """Whether this counter is the entry point of a program."""
        return self.value == 0

    def __str__(self) -> str:
        return f"#{self.value:04X}"

    def __repr__(self) -> str:
        return f"ProgramCounter(#{self.value:04X})"


ProgramCounter.ZERO = ProgramCounter(0)