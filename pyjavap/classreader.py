"""
Java class file reader.

Reads a complete class file in layout order (JVM Spec 4.1): header,
constant pool, access flags, this/super class, interfaces, fields,
methods and class attributes. Any error aborts the whole read.
"""

import logging
from pathlib import Path
from typing import Optional

from .buffer import ByteCursor
from .classfile import (
    Attribute,
    ClassFile,
    ClassFileField,
    ClassFileMethod,
    ConstantValueKind,
    FieldConstantValue,
)
from .code import (
    ExceptionTable,
    ExceptionTableEntry,
    LineNumberTable,
    LineNumberTableEntry,
    MethodCode,
    ProgramCounter,
)
from .constant_pool import (
    ClassReference,
    ConstantPool,
    ConstantPoolEntry,
    ConstantPoolTag,
    DoubleEntry,
    DynamicReference,
    FieldReference,
    FloatEntry,
    IntegerEntry,
    InterfaceMethodReference,
    InvokeDynamicReference,
    LongEntry,
    MethodHandleReference,
    MethodReference,
    MethodTypeReference,
    ModuleReference,
    NameAndTypeDescriptor,
    PackageReference,
    StringReference,
    Utf8Entry,
)
from .descriptors import parse_field_descriptor, parse_method_descriptor
from .errors import InvalidClassDataError
from .flags import ClassAccessFlags, FieldFlags, MethodFlags
from .version import ClassFileVersion

log = logging.getLogger(__name__)

CLASS_FILE_MAGIC = 0xCAFEBABE


class ClassFileReader:
    """Reads one class file from an in-memory buffer."""

    def __init__(self, data: bytes):
        self.cursor = ByteCursor(data)
        self.constant_pool = ConstantPool()

    def read(self) -> ClassFile:
        """Read the class file and return the ClassFile."""
        magic = self.cursor.read_u32()
        if magic != CLASS_FILE_MAGIC:
            log.debug("Bad magic %#010x", magic)
            raise InvalidClassDataError("magic")

        minor = self.cursor.read_u16()
        major = self.cursor.read_u16()
        version = ClassFileVersion(major, minor)

        self._read_constant_pool()

        flags = ClassAccessFlags(self.cursor.read_u16())
        name = self.constant_pool.class_name_at(self.cursor.read_u16())
        superclass = self._read_optional_class_name()
        log.debug("Reading class %s (version %s)", name, version)

        interfaces_count = self.cursor.read_u16()
        interfaces = tuple(
            self.constant_pool.class_name_at(self.cursor.read_u16())
            for _ in range(interfaces_count)
        )

        fields_count = self.cursor.read_u16()
        fields = tuple(self._read_field() for _ in range(fields_count))

        methods_count = self.cursor.read_u16()
        methods = tuple(self._read_method() for _ in range(methods_count))

        deprecated = False
        source_file = None
        raw_attributes = []
        for attr_name, body in self._read_attributes():
            if attr_name == "SourceFile":
                source_file = self.constant_pool.utf8_at(body.read_u16())
            elif attr_name == "Deprecated":
                deprecated = True
            else:
                raw_attributes.append(Attribute(attr_name, bytes(body.read_bytes(body.remaining))))

        if self.cursor.has_more_data():
            log.debug("%d trailing byte(s) after class %s", self.cursor.remaining, name)

        return ClassFile(
            version=version,
            constants=self.constant_pool,
            flags=flags,
            name=name,
            superclass=superclass,
            interfaces=interfaces,
            fields=fields,
            methods=methods,
            deprecated=deprecated,
            source_file=source_file,
            attributes=tuple(raw_attributes),
        )

    def _read_optional_class_name(self) -> Optional[str]:
        index = self.cursor.read_u16()
        if index == 0:
            return None
        return self.constant_pool.class_name_at(index)

    def _read_constant_pool(self):
        """Read the constant pool. Long and Double entries use two indices."""
        count = self.cursor.read_u16()
        i = 1
        while i < count:
            entry = self._read_constant_pool_entry()
            self.constant_pool.add_entry(entry)
            i += 2 if entry.is_wide else 1
        self.constant_pool.freeze()
        log.debug("Read constant pool with %d slot(s)", len(self.constant_pool))

    def _read_constant_pool_entry(self) -> ConstantPoolEntry:
        tag = self.cursor.read_u8()

        if tag == ConstantPoolTag.UTF8:
            length = self.cursor.read_u16()
            return Utf8Entry(self.cursor.read_text(length))
        elif tag == ConstantPoolTag.INTEGER:
            return IntegerEntry(self.cursor.read_i32())
        elif tag == ConstantPoolTag.FLOAT:
            return FloatEntry(self.cursor.read_f32())
        elif tag == ConstantPoolTag.LONG:
            return LongEntry(self.cursor.read_i64())
        elif tag == ConstantPoolTag.DOUBLE:
            return DoubleEntry(self.cursor.read_f64())
        elif tag == ConstantPoolTag.CLASS:
            return ClassReference(self.cursor.read_u16())
        elif tag == ConstantPoolTag.STRING:
            return StringReference(self.cursor.read_u16())
        elif tag == ConstantPoolTag.FIELDREF:
            return FieldReference(self.cursor.read_u16(), self.cursor.read_u16())
        elif tag == ConstantPoolTag.METHODREF:
            return MethodReference(self.cursor.read_u16(), self.cursor.read_u16())
        elif tag == ConstantPoolTag.INTERFACE_METHODREF:
            return InterfaceMethodReference(self.cursor.read_u16(), self.cursor.read_u16())
        elif tag == ConstantPoolTag.NAME_AND_TYPE:
            return NameAndTypeDescriptor(self.cursor.read_u16(), self.cursor.read_u16())
        elif tag == ConstantPoolTag.METHOD_HANDLE:
            return MethodHandleReference(self.cursor.read_u8(), self.cursor.read_u16())
        elif tag == ConstantPoolTag.METHOD_TYPE:
            return MethodTypeReference(self.cursor.read_u16())
        elif tag == ConstantPoolTag.DYNAMIC:
            return DynamicReference(self.cursor.read_u16(), self.cursor.read_u16())
        elif tag == ConstantPoolTag.INVOKE_DYNAMIC:
            return InvokeDynamicReference(self.cursor.read_u16(), self.cursor.read_u16())
        elif tag == ConstantPoolTag.MODULE:
            return ModuleReference(self.cursor.read_u16())
        elif tag == ConstantPoolTag.PACKAGE:
            return PackageReference(self.cursor.read_u16())
        raise InvalidClassDataError(f"unknown constant pool tag {tag}")

    def _read_attributes(self, cursor: Optional[ByteCursor] = None):
        """Yield (name, body cursor) for each attribute.

        The body cursor only covers the attribute's declared length.
        """
        cursor = cursor or self.cursor
        count = cursor.read_u16()
        for _ in range(count):
            name = self.constant_pool.utf8_at(cursor.read_u16())
            length = cursor.read_u32()
            yield name, cursor.sub_cursor(length)

    def _read_field(self) -> ClassFileField:
        flags = FieldFlags(self.cursor.read_u16())
        name = self.constant_pool.utf8_at(self.cursor.read_u16())
        type_descriptor = parse_field_descriptor(self.constant_pool.utf8_at(self.cursor.read_u16()))

        constant_value = None
        deprecated = False
        raw_attributes = []
        for attr_name, body in self._read_attributes():
            if attr_name == "ConstantValue":
                constant_value = self._read_constant_value(body.read_u16())
            elif attr_name == "Deprecated":
                deprecated = True
            else:
                raw_attributes.append(Attribute(attr_name, bytes(body.read_bytes(body.remaining))))

        return ClassFileField(
            flags=flags,
            name=name,
            type_descriptor=type_descriptor,
            constant_value=constant_value,
            deprecated=deprecated,
            attributes=tuple(raw_attributes),
        )

    def _read_constant_value(self, index: int) -> FieldConstantValue:
        entry = self.constant_pool.get_entry(index)
        if isinstance(entry, IntegerEntry):
            return FieldConstantValue(ConstantValueKind.INT, entry.value)
        elif isinstance(entry, FloatEntry):
            return FieldConstantValue(ConstantValueKind.FLOAT, entry.value)
        elif isinstance(entry, LongEntry):
            return FieldConstantValue(ConstantValueKind.LONG, entry.value)
        elif isinstance(entry, DoubleEntry):
            return FieldConstantValue(ConstantValueKind.DOUBLE, entry.value)
        elif isinstance(entry, StringReference):
            return FieldConstantValue(ConstantValueKind.STRING, self.constant_pool.utf8_at(entry.string_index))
        raise InvalidClassDataError(f"ConstantValue at index {index} is a {entry.tag.name}", True)

    def _read_method(self) -> ClassFileMethod:
        flags = MethodFlags(self.cursor.read_u16())
        name = self.constant_pool.utf8_at(self.cursor.read_u16())
        type_descriptor = self.constant_pool.utf8_at(self.cursor.read_u16())
        parsed_type_descriptor = parse_method_descriptor(type_descriptor)

        code = None
        deprecated = False
        thrown_exceptions = ()
        raw_attributes = []
        for attr_name, body in self._read_attributes():
            if attr_name == "Code":
                code = self._read_code(body)
            elif attr_name == "Exceptions":
                thrown_exceptions = self._read_exceptions(body)
            elif attr_name == "Deprecated":
                deprecated = True
            else:
                raw_attributes.append(Attribute(attr_name, bytes(body.read_bytes(body.remaining))))

        log.debug("Read method %s%s (%s)", name, type_descriptor,
                  f"{len(code.code)} bytes of code" if code else "no code")
        return ClassFileMethod(
            flags=flags,
            name=name,
            type_descriptor=type_descriptor,
            parsed_type_descriptor=parsed_type_descriptor,
            code=code,
            deprecated=deprecated,
            thrown_exceptions=thrown_exceptions,
            attributes=tuple(raw_attributes),
        )

    def _read_exceptions(self, body: ByteCursor) -> tuple[str, ...]:
        count = body.read_u16()
        return tuple(self.constant_pool.class_name_at(body.read_u16()) for _ in range(count))

    def _read_code(self, body: ByteCursor) -> MethodCode:
        max_stack = body.read_u16()
        max_locals = body.read_u16()
        code_length = body.read_u32()
        code = bytes(body.read_bytes(code_length))

        exception_table_length = body.read_u16()
        exception_entries = []
        for _ in range(exception_table_length):
            start_pc = body.read_u16()
            end_pc = body.read_u16()
            handler_pc = body.read_u16()
            catch_type = body.read_u16()
            exception_entries.append(ExceptionTableEntry(
                start_pc=ProgramCounter(start_pc),
                end_pc=ProgramCounter(end_pc),
                handler_pc=ProgramCounter(handler_pc),
                catch_class=self.constant_pool.class_name_at(catch_type) if catch_type else None,
            ))

        line_number_table = None
        raw_attributes = []
        for attr_name, attr_body in self._read_attributes(body):
            if attr_name == "LineNumberTable":
                line_number_table = self._read_line_number_table(attr_body)
            else:
                raw_attributes.append(Attribute(attr_name, bytes(attr_body.read_bytes(attr_body.remaining))))

        return MethodCode(
            max_stack=max_stack,
            max_locals=max_locals,
            code=code,
            exception_table=ExceptionTable(exception_entries),
            line_number_table=line_number_table,
            attributes=tuple(raw_attributes),
        )

    def _read_line_number_table(self, body: ByteCursor) -> LineNumberTable:
        count = body.read_u16()
        entries = []
        for _ in range(count):
            start_pc = body.read_u16()
            line_number = body.read_u16()
            entries.append(LineNumberTableEntry(ProgramCounter(start_pc), line_number))
        return LineNumberTable(entries)


def read_buffer(data: bytes) -> ClassFile:
    """Read a class file from bytes."""
    return ClassFileReader(data).read()


def read_class_file(path: str | Path) -> ClassFile:
    """Read a single class file."""
    data = Path(path).read_bytes()
    return read_buffer(data)
