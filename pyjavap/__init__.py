"""pyjavap - A reader and disassembler for Java class files."""

from .classfile import ClassFile, ClassFileField, ClassFileMethod, FieldConstantValue
from .classreader import ClassFileReader, read_buffer, read_class_file
from .code import ExceptionTable, LineNumberTable, MethodCode
from .constant_pool import ConstantPool
from .descriptors import FieldType, MethodDescriptor
from .display import format_class_file
from .errors import (
    ClassFileError,
    ClassFileVersionError,
    ConstantPoolIndexError,
    InvalidClassDataError,
    InvalidFieldDescriptorError,
    InvalidInstructionPaddingError,
    InvalidJumpOffsetError,
    InvalidMethodDescriptorError,
    InvalidModifiedUtf8Error,
    LineNumberLookupError,
    MissingOperandsError,
    PhantomEntryError,
    UnexpectedEndOfDataError,
    UnknownOpcodeError,
)
from .instructions import Instruction, Opcode, iter_instructions, parse_instructions
from .version import ClassFileVersion, SdkVersion

__version__ = "0.1.0"
__all__ = [
    "ClassFile",
    "ClassFileField",
    "ClassFileMethod",
    "ClassFileReader",
    "ClassFileVersion",
    "ConstantPool",
    "ExceptionTable",
    "FieldConstantValue",
    "FieldType",
    "Instruction",
    "LineNumberTable",
    "MethodCode",
    "MethodDescriptor",
    "Opcode",
    "SdkVersion",
    "format_class_file",
    "iter_instructions",
    "parse_instructions",
    "read_buffer",
    "read_class_file",
    "ClassFileError",
    "ClassFileVersionError",
    "ConstantPoolIndexError",
    "InvalidClassDataError",
    "InvalidFieldDescriptorError",
    "InvalidInstructionPaddingError",
    "InvalidJumpOffsetError",
    "InvalidMethodDescriptorError",
    "InvalidModifiedUtf8Error",
    "LineNumberLookupError",
    "MissingOperandsError",
    "PhantomEntryError",
    "UnexpectedEndOfDataError",
    "UnknownOpcodeError",
]
