"""
Code attribute of a method and the tables queried by program counter.
"""

import bisect
from dataclasses import dataclass, field
from typing import NewType, Optional, Sequence

from .errors import LineNumberLookupError
from .instructions import Instruction, parse_instructions

# Byte offset into a method's bytecode
ProgramCounter = NewType("ProgramCounter", int)


@dataclass(frozen=True)
class ExceptionTableEntry:
    """A handler covering the half-open range [start_pc, end_pc)."""
    start_pc: ProgramCounter
    end_pc: ProgramCounter
    handler_pc: ProgramCounter
    catch_class: Optional[str] = None  # None for finally (catches all)

    def covers(self, pc: int) -> bool:
        return self.start_pc <= pc < self.end_pc


class ExceptionTable:
    """Exception handlers of a method, kept in declaration order."""

    def __init__(self, entries: Sequence[ExceptionTableEntry] = ()):
        self._entries = tuple(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ExceptionTable):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        return f"ExceptionTable({list(self._entries)!r})"

    @property
    def entries(self) -> tuple[ExceptionTableEntry, ...]:
        return self._entries

    def lookup(self, pc: int) -> tuple[ExceptionTableEntry, ...]:
        """All handlers whose range contains pc, in the order the JVM tries them."""
        return tuple(entry for entry in self._entries if entry.covers(pc))


@dataclass(frozen=True)
class LineNumberTableEntry:
    program_counter: ProgramCounter
    line_number: int


class LineNumberTable:
    """Maps program counters to source lines.

    Entries are sorted by program counter. An entry at pc 0 and one at pc 3
    mean the first three bytes of code belong to the first line and the
    rest to the second.
    """

    def __init__(self, entries: Sequence[LineNumberTableEntry] = ()):
        self._entries = tuple(sorted(entries, key=lambda e: e.program_counter))
        self._pcs = [e.program_counter for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, LineNumberTable):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        return f"LineNumberTable({list(self._entries)!r})"

    @property
    def entries(self) -> tuple[LineNumberTableEntry, ...]:
        return self._entries

    def lookup_pc(self, pc: int) -> int:
        """Line of the last entry starting at or before pc."""
        idx = bisect.bisect_right(self._pcs, pc) - 1
        if idx < 0:
            raise LineNumberLookupError(pc)
        return self._entries[idx].line_number


@dataclass(frozen=True)
class MethodCode:
    """Contents of a method's Code attribute."""
    max_stack: int
    max_locals: int
    code: bytes
    exception_table: ExceptionTable = field(default_factory=ExceptionTable)
    line_number_table: Optional[LineNumberTable] = None
    attributes: tuple = ()  # unrecognised nested attributes

    def instructions(self) -> list[tuple[int, Instruction]]:
        """Decode the bytecode into (address, Instruction) pairs."""
        return parse_instructions(self.code)
