"""
Decoded representation of a Java class file.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .code import MethodCode
from .constant_pool import ConstantPool
from .descriptors import BaseType, FieldType, MethodDescriptor, PrimitiveKind
from .flags import ClassAccessFlags, FieldFlags, MethodFlags
from .version import ClassFileVersion


# Return types the JVM treats as int on the operand stack
_INT_LIKE = frozenset({
    PrimitiveKind.INT, PrimitiveKind.SHORT, PrimitiveKind.CHAR,
    PrimitiveKind.BYTE, PrimitiveKind.BOOLEAN,
})


@dataclass(frozen=True)
class Attribute:
    """An attribute the decoder keeps as raw bytes."""
    name: str
    data: bytes


class ConstantValueKind(Enum):
    INT = "Int"
    FLOAT = "Float"
    LONG = "Long"
    DOUBLE = "Double"
    STRING = "String"


@dataclass(frozen=True)
class FieldConstantValue:
    """Value of a ConstantValue attribute."""
    kind: ConstantValueKind
    value: Union[int, float, str]

    def __str__(self) -> str:
        return f"{self.kind.value}({self.value!r})"


@dataclass(frozen=True)
class ClassFileField:
    flags: FieldFlags
    name: str
    type_descriptor: FieldType
    constant_value: Optional[FieldConstantValue] = None  # set for fields with a ConstantValue attribute
    deprecated: bool = False
    attributes: tuple[Attribute, ...] = ()


@dataclass(frozen=True)
class ClassFileMethod:
    """A method of a class.

    The type descriptor is kept both as written, e.g. "(FI)V", and parsed.
    """
    flags: MethodFlags
    name: str
    type_descriptor: str
    parsed_type_descriptor: MethodDescriptor
    code: Optional[MethodCode] = None  # None for abstract and native methods
    deprecated: bool = False
    thrown_exceptions: tuple[str, ...] = ()
    attributes: tuple[Attribute, ...] = ()

    def is_static(self) -> bool:
        return bool(self.flags & MethodFlags.STATIC)

    def is_native(self) -> bool:
        return bool(self.flags & MethodFlags.NATIVE)

    def is_void(self) -> bool:
        return self.parsed_type_descriptor.return_type is None

    def returns(self, expected_type: Optional[FieldType]) -> bool:
        """Whether the method returns expected_type, treating boolean, byte, char and short as int."""
        return_type = self.parsed_type_descriptor.return_type
        if isinstance(return_type, BaseType) and return_type.kind in _INT_LIKE:
            return expected_type == BaseType(PrimitiveKind.INT)
        return return_type == expected_type


@dataclass(frozen=True)
class ClassFile:
    """Contents of a .class file."""
    version: ClassFileVersion
    constants: ConstantPool
    flags: ClassAccessFlags
    name: str
    superclass: Optional[str]  # None only for java/lang/Object
    interfaces: tuple[str, ...] = ()
    fields: tuple[ClassFileField, ...] = ()
    methods: tuple[ClassFileMethod, ...] = ()
    deprecated: bool = False
    source_file: Optional[str] = None
    attributes: tuple[Attribute, ...] = ()

    def find_method(self, name: str, type_descriptor: Optional[str] = None) -> Optional[ClassFileMethod]:
        """First method with the given name (and descriptor, if given)."""
        for method in self.methods:
            if method.name == name and (type_descriptor is None or method.type_descriptor == type_descriptor):
                return method
        return None

    def find_field(self, name: str) -> Optional[ClassFileField]:
        for fld in self.fields:
            if fld.name == name:
                return fld
        return None
