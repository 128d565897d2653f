"""
Constant pool of a class file.

Entries hold raw 1-based indices into the same pool; they are resolved
lazily, and every lookup is validated.
See JVM Spec 4.4 for the entry layouts.
"""

import math
import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Iterator, Union

from .errors import (
    ClassFileError,
    ConstantPoolIndexError,
    InvalidClassDataError,
    PhantomEntryError,
)


class ConstantPoolTag(IntEnum):
    UTF8 = 1
    INTEGER = 3
    FLOAT = 4
    LONG = 5
    DOUBLE = 6
    CLASS = 7
    STRING = 8
    FIELDREF = 9
    METHODREF = 10
    INTERFACE_METHODREF = 11
    NAME_AND_TYPE = 12
    METHOD_HANDLE = 15
    METHOD_TYPE = 16
    DYNAMIC = 17
    INVOKE_DYNAMIC = 18
    MODULE = 19
    PACKAGE = 20


# Deepest legal chain is MethodHandle -> Methodref -> NameAndType -> Utf8
_MAX_REFERENCE_DEPTH = 8


class ConstantPoolEntry:
    """Base class for constant pool entries."""
    tag: ClassVar[ConstantPoolTag]

    @property
    def is_wide(self) -> bool:
        """Long and Double take two slots in the pool."""
        return self.tag in (ConstantPoolTag.LONG, ConstantPoolTag.DOUBLE)


@dataclass(frozen=True)
class Utf8Entry(ConstantPoolEntry):
    text: str
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.UTF8


@dataclass(frozen=True)
class IntegerEntry(ConstantPoolEntry):
    value: int
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.INTEGER


@dataclass(frozen=True)
class FloatEntry(ConstantPoolEntry):
    value: float
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.FLOAT


@dataclass(frozen=True)
class LongEntry(ConstantPoolEntry):
    value: int
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.LONG


@dataclass(frozen=True)
class DoubleEntry(ConstantPoolEntry):
    value: float
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.DOUBLE


@dataclass(frozen=True)
class ClassReference(ConstantPoolEntry):
    name_index: int
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.CLASS


@dataclass(frozen=True)
class StringReference(ConstantPoolEntry):
    string_index: int
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.STRING


@dataclass(frozen=True)
class FieldReference(ConstantPoolEntry):
    class_index: int
    name_and_type_index: int
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.FIELDREF


@dataclass(frozen=True)
class MethodReference(ConstantPoolEntry):
    class_index: int
    name_and_type_index: int
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.METHODREF


@dataclass(frozen=True)
class InterfaceMethodReference(ConstantPoolEntry):
    class_index: int
    name_and_type_index: int
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.INTERFACE_METHODREF


@dataclass(frozen=True)
class NameAndTypeDescriptor(ConstantPoolEntry):
    name_index: int
    descriptor_index: int
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.NAME_AND_TYPE


@dataclass(frozen=True)
class MethodHandleReference(ConstantPoolEntry):
    reference_kind: int
    reference_index: int
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.METHOD_HANDLE


@dataclass(frozen=True)
class MethodTypeReference(ConstantPoolEntry):
    descriptor_index: int
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.METHOD_TYPE


@dataclass(frozen=True)
class InvokeDynamicReference(ConstantPoolEntry):
    bootstrap_method_attr_index: int
    name_and_type_index: int
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.INVOKE_DYNAMIC


@dataclass(frozen=True)
class DynamicReference(ConstantPoolEntry):
    bootstrap_method_attr_index: int
    name_and_type_index: int
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.DYNAMIC


@dataclass(frozen=True)
class ModuleReference(ConstantPoolEntry):
    name_index: int
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.MODULE


@dataclass(frozen=True)
class PackageReference(ConstantPoolEntry):
    name_index: int
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.PACKAGE


class _PhantomSlot:
    """Placeholder for the second slot of a Long or Double."""
    __slots__ = ()

    def __repr__(self) -> str:
        return "PHANTOM"

    def __reduce__(self):
        # Copies and unpickled pools share the module-level singleton
        return "PHANTOM"


PHANTOM = _PhantomSlot()

ConstantPoolSlot = Union[ConstantPoolEntry, _PhantomSlot]

_MEMBER_REFERENCES = (FieldReference, MethodReference, InterfaceMethodReference)
_DYNAMIC_REFERENCES = (InvokeDynamicReference, DynamicReference)


def format_float32(value: float) -> str:
    """Shortest decimal form that reads back as the same 32-bit float."""
    if math.isnan(value) or math.isinf(value):
        return repr(value)
    packed = struct.pack(">f", value)
    text = repr(value)
    for digits in range(1, 10):
        candidate = f"{value:.{digits}g}"
        try:
            if struct.pack(">f", float(candidate)) == packed:
                text = candidate
                break
        except OverflowError:
            continue
    return repr(float(text))


class ConstantPool:
    """The constant pool, indexed from 1.

    Slots are stored in a list; pool index i lives at position i - 1.
    The reader calls freeze() once the pool is read; after that the pool
    rejects new entries.
    """

    def __init__(self):
        self._slots: list[ConstantPoolSlot] = []
        self._frozen = False

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[ConstantPoolSlot]:
        return iter(self._slots)

    def add_entry(self, entry: ConstantPoolEntry) -> int:
        """Append an entry and return its index. Long and Double also reserve a phantom slot."""
        if self._frozen:
            raise ValueError("constant pool is read-only")
        self._slots.append(entry)
        idx = len(self._slots)
        if entry.is_wide:
            self._slots.append(PHANTOM)
        return idx

    def freeze(self):
        """Make the pool read-only."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get_entry(self, index: int) -> ConstantPoolEntry:
        if index < 1 or index > len(self._slots):
            raise ConstantPoolIndexError(index)
        slot = self._slots[index - 1]
        if slot is PHANTOM:
            raise PhantomEntryError(index)
        return slot

    def iter_indices(self) -> Iterator[int]:
        """Yield every index that holds a real entry."""
        for raw_idx, slot in enumerate(self._slots):
            if slot is not PHANTOM:
                yield raw_idx + 1

    def utf8_at(self, index: int) -> str:
        """Get the text of the Utf8 entry at index."""
        entry = self.get_entry(index)
        if not isinstance(entry, Utf8Entry):
            raise InvalidClassDataError(
                f"expected Utf8 at index {index}, got {entry.tag.name}", True)
        return entry.text

    def class_name_at(self, index: int) -> str:
        """Get the internal name of the Class entry at index."""
        entry = self.get_entry(index)
        if not isinstance(entry, ClassReference):
            raise InvalidClassDataError(
                f"expected Class at index {index}, got {entry.tag.name}", True)
        return self.utf8_at(entry.name_index)

    def text_of(self, index: int) -> str:
        """Resolve an entry to plain text, following references."""
        return self._text_of(index, 0)

    def _text_of(self, index: int, depth: int) -> str:
        if depth > _MAX_REFERENCE_DEPTH:
            raise InvalidClassDataError(f"constant pool reference cycle at index {index}", True)
        entry = self.get_entry(index)
        depth += 1

        if isinstance(entry, Utf8Entry):
            return entry.text
        elif isinstance(entry, FloatEntry):
            return format_float32(entry.value)
        elif isinstance(entry, DoubleEntry):
            return repr(entry.value)
        elif isinstance(entry, (IntegerEntry, LongEntry)):
            return str(entry.value)
        elif isinstance(entry, ClassReference):
            return self._text_of(entry.name_index, depth)
        elif isinstance(entry, StringReference):
            return self._text_of(entry.string_index, depth)
        elif isinstance(entry, _MEMBER_REFERENCES):
            owner = self._text_of(entry.class_index, depth)
            member = self._text_of(entry.name_and_type_index, depth)
            return f"{owner}.{member}"
        elif isinstance(entry, NameAndTypeDescriptor):
            name = self._text_of(entry.name_index, depth)
            descriptor = self._text_of(entry.descriptor_index, depth)
            return f"{name}: {descriptor}"
        elif isinstance(entry, MethodHandleReference):
            return self._text_of(entry.reference_index, depth)
        elif isinstance(entry, MethodTypeReference):
            return self._text_of(entry.descriptor_index, depth)
        elif isinstance(entry, (ModuleReference, PackageReference)):
            return self._text_of(entry.name_index, depth)
        elif isinstance(entry, _DYNAMIC_REFERENCES):
            nat = self._text_of(entry.name_and_type_index, depth)
            return f"#{entry.bootstrap_method_attr_index}:{nat}"
        raise InvalidClassDataError(f"unknown constant pool entry at index {index}", True)

    def render_entry(self, index: int) -> str:
        """Describe an entry for a debug dump, showing the raw indices and what they resolve to."""
        return self._render_entry(index, 0)

    def _render_entry(self, index: int, depth: int) -> str:
        if depth > _MAX_REFERENCE_DEPTH:
            raise InvalidClassDataError(f"constant pool reference cycle at index {index}", True)
        entry = self.get_entry(index)
        depth += 1

        if isinstance(entry, Utf8Entry):
            return f'String: "{entry.text}"'
        elif isinstance(entry, IntegerEntry):
            return f"Integer: {entry.value}"
        elif isinstance(entry, FloatEntry):
            return f"Float: {format_float32(entry.value)}"
        elif isinstance(entry, LongEntry):
            return f"Long: {entry.value}"
        elif isinstance(entry, DoubleEntry):
            return f"Double: {entry.value!r}"
        elif isinstance(entry, ClassReference):
            n = entry.name_index
            return f"ClassReference: {n} => ({self._render_entry(n, depth)})"
        elif isinstance(entry, StringReference):
            n = entry.string_index
            return f"StringReference: {n} => ({self._render_entry(n, depth)})"
        elif isinstance(entry, MethodTypeReference):
            n = entry.descriptor_index
            return f"MethodTypeReference: {n} => ({self._render_entry(n, depth)})"
        elif isinstance(entry, (ModuleReference, PackageReference)):
            n = entry.name_index
            return f"{type(entry).__name__}: {n} => ({self._render_entry(n, depth)})"

        if isinstance(entry, _MEMBER_REFERENCES):
            i, j = entry.class_index, entry.name_and_type_index
        elif isinstance(entry, NameAndTypeDescriptor):
            i, j = entry.name_index, entry.descriptor_index
        elif isinstance(entry, MethodHandleReference):
            n = entry.reference_index
            return (f"MethodHandleReference: kind {entry.reference_kind}, {n} => "
                    f"({self._render_entry(n, depth)})")
        elif isinstance(entry, _DYNAMIC_REFERENCES):
            n = entry.name_and_type_index
            return (f"{type(entry).__name__}: bootstrap {entry.bootstrap_method_attr_index}, "
                    f"{n} => ({self._render_entry(n, depth)})")
        else:
            raise InvalidClassDataError(f"unknown constant pool entry at index {index}", True)
        return (f"{type(entry).__name__}: {i}, {j} => "
                f"({self._render_entry(i, depth)}), ({self._render_entry(j, depth)})")

    def render(self) -> str:
        """Dump every slot. An entry that cannot be resolved gets a placeholder line."""
        lines = [f"Constant pool: (size: {len(self._slots)})"]
        for raw_idx, slot in enumerate(self._slots):
            index = raw_idx + 1
            if slot is PHANTOM:
                lines.append(f"    {index}, ------ PhantomEntry ------")
                continue
            try:
                text = self.render_entry(index)
            except ClassFileError as e:
                text = f"<unresolvable: {e}>"
            lines.append(f"    {index}, {text}")
        return "\n".join(lines)
