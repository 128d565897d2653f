"""End-to-end tests for reading class files."""

import pytest

from classfile_builder import ClassFileBuilder, u1, u2, u4

from pyjavap import read_buffer, read_class_file
from pyjavap.classfile import Attribute, ConstantValueKind, FieldConstantValue
from pyjavap.constant_pool import DynamicReference, ModuleReference, PackageReference, Utf8Entry
from pyjavap.descriptors import BaseType, ObjectType, PrimitiveKind
from pyjavap.errors import (
    ClassFileError,
    ClassFileVersionError,
    InvalidClassDataError,
    InvalidFieldDescriptorError,
    InvalidMethodDescriptorError,
    InvalidModifiedUtf8Error,
    PhantomEntryError,
    UnexpectedEndOfDataError,
    UnknownOpcodeError,
)
from pyjavap.flags import ClassAccessFlags, FieldFlags, MethodFlags
from pyjavap.instructions import Instruction, Opcode
from pyjavap.version import SdkVersion

INT = BaseType(PrimitiveKind.INT)


def build_sample():
    """Assemble a small class; returns the bytes and some constant indices."""
    b = ClassFileBuilder(major=52)
    long_idx = b.long(1 << 40)

    b.add_field(0x0019, "ANSWER", "I", [b.attribute("ConstantValue", u2(b.integer(42)))])
    b.add_field(0x0002, "name", "Ljava/lang/String;", [b.attribute("Deprecated", b"")])
    b.add_field(0x001A, "BIG", "J", [b.attribute("ConstantValue", u2(long_idx))])
    b.add_field(0x0019, "GREETING", "Ljava/lang/String;",
                [b.attribute("ConstantValue", u2(b.string("hi")))])

    init_ref = b.method_ref("java/lang/Object", "<init>", "()V")
    init_code = bytes([0x2A, 0xB7]) + u2(init_ref) + bytes([0xB1])
    b.add_method(0x0001, "<init>", "()V", [
        b.code_attribute(init_code, max_stack=1, max_locals=1,
                         attributes=[b.line_number_table([(0, 1)])]),
    ])

    add_code = bytes([0x1A, 0x1B, 0x60, 0xAC])
    b.add_method(0x0009, "add", "(II)I", [
        b.code_attribute(
            add_code, max_stack=2, max_locals=2,
            exception_table=[(0, 3, 3, "java/lang/ArithmeticException"), (0, 3, 3, None)],
            attributes=[
                b.line_number_table([(0, 5), (2, 6)]),
                b.attribute("StackMapTable", b"\x00\x00"),
            ]),
        b.attribute("Exceptions", u2(1) + u2(b.class_("java/io/IOException"))),
    ])

    b.add_method(0x0101, "nativeCall", "()Z", [b.attribute("Deprecated", b"")])

    data = b.build(
        "Sample",
        interfaces=["java/lang/Runnable"],
        attributes=[
            b.attribute("SourceFile", u2(b.utf8("Sample.java"))),
            b.attribute("Deprecated", b""),
            b.attribute("Custom", b"\x01\x02"),
        ],
    )
    return data, {"long": long_idx, "init_ref": init_ref}


@pytest.fixture
def sample():
    data, indices = build_sample()
    return read_buffer(data), indices


class TestClassHeader:
    def test_names(self, sample):
        cls, _ = sample
        assert cls.name == "Sample"
        assert cls.superclass == "java/lang/Object"
        assert cls.interfaces == ("java/lang/Runnable",)

    def test_version_and_flags(self, sample):
        cls, _ = sample
        assert cls.version.major == 52
        assert cls.version.sdk_version == SdkVersion.JDK_8
        assert cls.flags == ClassAccessFlags.PUBLIC | ClassAccessFlags.SUPER

    def test_class_attributes(self, sample):
        cls, _ = sample
        assert cls.source_file == "Sample.java"
        assert cls.deprecated
        assert cls.attributes == (Attribute("Custom", b"\x01\x02"),)

    def test_constant_pool_phantom(self, sample):
        cls, indices = sample
        assert cls.constants.text_of(indices["long"]) == str(1 << 40)
        with pytest.raises(PhantomEntryError):
            cls.constants.get_entry(indices["long"] + 1)

    def test_no_superclass(self):
        data = ClassFileBuilder().build("java/lang/Object", superclass=None)
        assert read_buffer(data).superclass is None

    def test_bytearray_input(self):
        data, _ = build_sample()
        assert read_buffer(bytearray(data)).name == "Sample"

    def test_module_info_constants(self):
        b = ClassFileBuilder(major=53)
        name_idx = b.utf8("com.example")
        module_idx = b.raw_entry(u1(19) + u2(name_idx))
        package_idx = b.raw_entry(u1(20) + u2(b.utf8("com/example/api")))
        dynamic_idx = b.raw_entry(u1(17) + u2(0) + u2(b.name_and_type("VALUE", "I")))
        cls = read_buffer(b.build("module-info", superclass=None, flags=0x8000))
        assert cls.flags == ClassAccessFlags.MODULE
        assert cls.constants.get_entry(module_idx) == ModuleReference(name_idx)
        assert cls.constants.text_of(module_idx) == "com.example"
        assert isinstance(cls.constants.get_entry(package_idx), PackageReference)
        assert cls.constants.text_of(package_idx) == "com/example/api"
        assert isinstance(cls.constants.get_entry(dynamic_idx), DynamicReference)
        assert cls.constants.text_of(dynamic_idx) == "#0:VALUE: I"

    def test_constant_pool_is_read_only(self, sample):
        cls, _ = sample
        assert cls.constants.frozen
        size = len(cls.constants)
        with pytest.raises(ValueError):
            cls.constants.add_entry(Utf8Entry("extra"))
        assert len(cls.constants) == size


class TestFields:
    def test_constant_values(self, sample):
        cls, _ = sample
        assert cls.find_field("ANSWER").constant_value == FieldConstantValue(ConstantValueKind.INT, 42)
        assert cls.find_field("BIG").constant_value == FieldConstantValue(ConstantValueKind.LONG, 1 << 40)
        assert cls.find_field("GREETING").constant_value == FieldConstantValue(ConstantValueKind.STRING, "hi")

    def test_field_types_and_flags(self, sample):
        cls, _ = sample
        answer = cls.find_field("ANSWER")
        assert answer.type_descriptor == INT
        assert answer.flags == FieldFlags.PUBLIC | FieldFlags.STATIC | FieldFlags.FINAL
        name = cls.find_field("name")
        assert name.type_descriptor == ObjectType("java/lang/String")
        assert name.deprecated
        assert name.constant_value is None

    def test_missing_field(self, sample):
        cls, _ = sample
        assert cls.find_field("nope") is None


class TestMethods:
    def test_constructor_code(self, sample):
        cls, indices = sample
        init = cls.find_method("<init>", "()V")
        assert init.code.max_stack == 1
        assert init.code.instructions() == [
            (0, Instruction(Opcode.ALOAD_0)),
            (1, Instruction(Opcode.INVOKESPECIAL, (indices["init_ref"],))),
            (4, Instruction(Opcode.RETURN)),
        ]
        assert init.code.line_number_table.lookup_pc(4) == 1
        assert cls.constants.text_of(indices["init_ref"]) == "java/lang/Object.<init>: ()V"

    def test_static_method(self, sample):
        cls, _ = sample
        add = cls.find_method("add")
        assert add.is_static()
        assert not add.is_void()
        assert add.returns(INT)
        assert add.parsed_type_descriptor.parameters == (INT, INT)
        assert add.thrown_exceptions == ("java/io/IOException",)

    def test_exception_and_line_tables(self, sample):
        cls, _ = sample
        code = cls.find_method("add").code
        handlers = code.exception_table.lookup(0)
        assert [h.catch_class for h in handlers] == ["java/lang/ArithmeticException", None]
        assert code.exception_table.lookup(3) == ()
        assert code.line_number_table.lookup_pc(1) == 5
        assert code.line_number_table.lookup_pc(3) == 6
        assert code.attributes == (Attribute("StackMapTable", b"\x00\x00"),)

    def test_native_method(self, sample):
        cls, _ = sample
        native = cls.find_method("nativeCall")
        assert native.is_native()
        assert native.flags == MethodFlags.PUBLIC | MethodFlags.NATIVE
        assert native.code is None
        assert native.deprecated
        assert native.returns(INT)
        assert not native.returns(BaseType(PrimitiveKind.BOOLEAN))

    def test_undecodable_code_is_read(self):
        b = ClassFileBuilder()
        b.add_method(0x0009, "broken", "()V", [b.code_attribute(bytes([0xCB]))])
        cls = read_buffer(b.build("Broken"))
        with pytest.raises(UnknownOpcodeError):
            cls.find_method("broken").code.instructions()


class TestReadFailures:
    def test_bad_magic(self):
        data = ClassFileBuilder().build("Foo", magic=0xCAFEBABF)
        with pytest.raises(InvalidClassDataError) as exc_info:
            read_buffer(data)
        assert exc_info.value.name == "magic"

    def test_unknown_version(self):
        data = ClassFileBuilder(major=70, minor=3).build("Foo")
        with pytest.raises(ClassFileVersionError) as exc_info:
            read_buffer(data)
        assert (exc_info.value.major, exc_info.value.minor) == (70, 3)

    def test_every_truncation_fails(self):
        data, _ = build_sample()
        for length in range(len(data)):
            with pytest.raises(ClassFileError):
                read_buffer(data[:length])

    def test_unknown_constant_tag(self):
        b = ClassFileBuilder()
        b.raw_entry(u1(2) + u2(0))
        with pytest.raises(InvalidClassDataError):
            read_buffer(b.build("Foo"))

    def test_invalid_utf8_constant(self):
        b = ClassFileBuilder()
        b.raw_entry(u1(1) + u2(1) + b"\x00")
        with pytest.raises(InvalidModifiedUtf8Error):
            read_buffer(b.build("Foo"))

    def test_constant_value_of_wrong_kind(self):
        b = ClassFileBuilder()
        b.add_field(0x0018, "X", "I", [b.attribute("ConstantValue", u2(b.class_("Foo")))])
        with pytest.raises(InvalidClassDataError) as exc_info:
            read_buffer(b.build("Foo"))
        assert exc_info.value.is_constant_pool_index

    def test_invalid_field_descriptor(self):
        b = ClassFileBuilder()
        b.add_field(0x0001, "x", "W")
        with pytest.raises(InvalidFieldDescriptorError):
            read_buffer(b.build("Foo"))

    def test_invalid_method_descriptor(self):
        b = ClassFileBuilder()
        b.add_method(0x0001, "m", "()JJ")
        with pytest.raises(InvalidMethodDescriptorError):
            read_buffer(b.build("Foo"))

    def test_attribute_longer_than_data(self):
        b = ClassFileBuilder()
        name_idx = b.utf8("Custom")
        data = b.build("Foo")
        # Replace the empty class attribute table with one overrunning attribute
        data = data[:-2] + u2(1) + u2(name_idx) + u4(10) + b"\x01"
        with pytest.raises(UnexpectedEndOfDataError):
            read_buffer(data)


class TestReadClassFile:
    def test_read_from_path(self, tmp_path):
        data, _ = build_sample()
        path = tmp_path / "Sample.class"
        path.write_bytes(data)
        assert read_class_file(path).name == "Sample"
        assert read_class_file(str(path)).name == "Sample"
