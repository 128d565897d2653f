"""
Field and method descriptor parser.

Descriptors describe the type of a field or the parameters and return type
of a method. See JVM Spec 4.3 for the grammar:

    FieldType  := BaseType | 'L' ClassName ';' | '[' FieldType
    BaseType   := B | C | D | F | I | J | S | Z
    Method     := '(' FieldType* ')' (FieldType | 'V')
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import InvalidFieldDescriptorError, InvalidMethodDescriptorError

# The JVM rejects array types with more dimensions than this
MAX_ARRAY_DIMENSIONS = 255


class PrimitiveKind(Enum):
    """Primitive types, valued by their descriptor character."""
    BYTE = "B"
    CHAR = "C"
    DOUBLE = "D"
    FLOAT = "F"
    INT = "I"
    LONG = "J"
    SHORT = "S"
    BOOLEAN = "Z"

    def __str__(self) -> str:
        return self.name.capitalize()


class FieldType(ABC):
    """Base class for the type of a field, parameter or return value."""

    @abstractmethod
    def descriptor(self) -> str:
        """Return the JVM type descriptor."""
        pass

    @staticmethod
    def parse(descriptor: str) -> "FieldType":
        """Parse a complete field descriptor such as "[Ljava/lang/String;"."""
        return parse_field_descriptor(descriptor)


@dataclass(frozen=True)
class BaseType(FieldType):
    kind: PrimitiveKind

    def descriptor(self) -> str:
        return self.kind.value

    def __str__(self) -> str:
        return str(self.kind)


@dataclass(frozen=True)
class ObjectType(FieldType):
    class_name: str  # internal form, e.g. java/lang/String

    def descriptor(self) -> str:
        return f"L{self.class_name};"

    def __str__(self) -> str:
        return self.class_name


@dataclass(frozen=True)
class ArrayType(FieldType):
    element: FieldType

    def descriptor(self) -> str:
        return "[" + self.element.descriptor()

    @property
    def dimensions(self) -> int:
        if isinstance(self.element, ArrayType):
            return self.element.dimensions + 1
        return 1

    def __str__(self) -> str:
        return f"{self.element}[]"


_BASE_TYPES = {kind.value: BaseType(kind) for kind in PrimitiveKind}


@dataclass(frozen=True)
class MethodDescriptor:
    """Parameter types and return type of a method. A return_type of None means void."""
    parameters: tuple[FieldType, ...] = ()
    return_type: Optional[FieldType] = None

    @staticmethod
    def parse(descriptor: str) -> "MethodDescriptor":
        return parse_method_descriptor(descriptor)

    def num_arguments(self) -> int:
        return len(self.parameters)

    def descriptor(self) -> str:
        params = "".join(p.descriptor() for p in self.parameters)
        ret = self.return_type.descriptor() if self.return_type is not None else "V"
        return f"({params}){ret}"

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        ret = self.return_type if self.return_type is not None else "void"
        return f"({params}) -> {ret}"


class _Malformed(Exception):
    """Raised inside the parser; converted to the public error with the full descriptor."""
    pass


class DescriptorParser:
    """Recursive-descent parser over a descriptor string.

    Keeps an explicit position so the field type rule can be reused while
    reading the parameters of a method descriptor.
    """

    def __init__(self, descriptor: str):
        self.desc = descriptor
        self.pos = 0

    def _peek(self) -> str:
        if self.pos >= len(self.desc):
            return ""
        return self.desc[self.pos]

    def _read(self) -> str:
        ch = self._peek()
        if not ch:
            raise _Malformed(f"unexpected end at pos {self.pos}")
        self.pos += 1
        return ch

    def _expect(self, expected: str):
        ch = self._read()
        if ch != expected:
            raise _Malformed(f"expected '{expected}' at pos {self.pos - 1}, got '{ch}'")

    def _at_end(self) -> bool:
        return self.pos >= len(self.desc)

    def parse_field_type(self) -> FieldType:
        try:
            field_type = self._parse_field_type()
            if not self._at_end():
                raise _Malformed(f"trailing data at pos {self.pos}")
        except _Malformed as e:
            raise InvalidFieldDescriptorError(self.desc) from e
        return field_type

    def parse_method(self) -> MethodDescriptor:
        try:
            self._expect("(")
            params = []
            while self._peek() != ")":
                if self._at_end():
                    raise _Malformed("unterminated parameter list")
                params.append(self._parse_field_type())
            self._expect(")")
            return_type = self._parse_return_type()
            if not self._at_end():
                raise _Malformed(f"trailing data at pos {self.pos}")
        except _Malformed as e:
            raise InvalidMethodDescriptorError(self.desc) from e
        return MethodDescriptor(parameters=tuple(params), return_type=return_type)

    def _parse_return_type(self) -> Optional[FieldType]:
        if self._peek() == "V":
            self._read()
            return None
        return self._parse_field_type()

    def _parse_field_type(self) -> FieldType:
        # Arrays are read iteratively; nesting depth equals the number of '['
        dimensions = 0
        while self._peek() == "[":
            self._read()
            dimensions += 1
            if dimensions > MAX_ARRAY_DIMENSIONS:
                raise _Malformed(f"more than {MAX_ARRAY_DIMENSIONS} array dimensions")
        field_type = self._parse_component_type()
        for _ in range(dimensions):
            field_type = ArrayType(field_type)
        return field_type

    def _parse_component_type(self) -> FieldType:
        ch = self._read()
        if ch in _BASE_TYPES:
            return _BASE_TYPES[ch]
        elif ch == "L":
            return self._parse_object_type()
        raise _Malformed(f"unexpected char '{ch}' at pos {self.pos - 1}")

    def _parse_object_type(self) -> ObjectType:
        end = self.desc.find(";", self.pos)
        if end == -1:
            raise _Malformed("missing ';' after class name")
        class_name = self.desc[self.pos:end]
        if not class_name:
            raise _Malformed(f"empty class name at pos {self.pos}")
        self.pos = end + 1
        return ObjectType(class_name)


def parse_field_descriptor(descriptor: str) -> FieldType:
    """Parse a field descriptor string."""
    return DescriptorParser(descriptor).parse_field_type()


def parse_method_descriptor(descriptor: str) -> MethodDescriptor:
    """Parse a method descriptor string."""
    return DescriptorParser(descriptor).parse_method()
