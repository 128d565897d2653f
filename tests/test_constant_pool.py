"""Tests for the constant pool."""

import copy
import pickle

import pytest

from pyjavap.constant_pool import (
    PHANTOM,
    ClassReference,
    ConstantPool,
    DoubleEntry,
    DynamicReference,
    FieldReference,
    FloatEntry,
    IntegerEntry,
    InterfaceMethodReference,
    LongEntry,
    MethodReference,
    ModuleReference,
    NameAndTypeDescriptor,
    PackageReference,
    StringReference,
    Utf8Entry,
    format_float32,
)
from pyjavap.errors import ConstantPoolIndexError, InvalidClassDataError, PhantomEntryError


@pytest.fixture
def pool():
    cp = ConstantPool()
    cp.add_entry(Utf8Entry("hey"))
    cp.add_entry(IntegerEntry(1))
    cp.add_entry(FloatEntry(2.1))
    cp.add_entry(LongEntry(123))
    cp.add_entry(DoubleEntry(3.56))
    cp.add_entry(ClassReference(1))
    cp.add_entry(StringReference(1))
    cp.add_entry(Utf8Entry("joe"))
    cp.add_entry(FieldReference(1, 10))
    cp.add_entry(MethodReference(1, 10))
    cp.add_entry(InterfaceMethodReference(1, 10))
    cp.add_entry(NameAndTypeDescriptor(1, 10))
    return cp


class TestIndexing:
    def test_entries_by_index(self, pool):
        assert len(pool) == 14
        assert pool.get_entry(1) == Utf8Entry("hey")
        assert pool.get_entry(2) == IntegerEntry(1)
        assert pool.get_entry(3) == FloatEntry(2.1)
        assert pool.get_entry(4) == LongEntry(123)
        assert pool.get_entry(6) == DoubleEntry(3.56)
        assert pool.get_entry(8) == ClassReference(1)
        assert pool.get_entry(9) == StringReference(1)
        assert pool.get_entry(10) == Utf8Entry("joe")
        assert pool.get_entry(11) == FieldReference(1, 10)
        assert pool.get_entry(12) == MethodReference(1, 10)
        assert pool.get_entry(13) == InterfaceMethodReference(1, 10)
        assert pool.get_entry(14) == NameAndTypeDescriptor(1, 10)

    @pytest.mark.parametrize("index", [5, 7])
    def test_phantom_slots(self, pool, index):
        with pytest.raises(PhantomEntryError) as exc_info:
            pool.get_entry(index)
        assert exc_info.value.index == index

    @pytest.mark.parametrize("index", [0, 15, -1])
    def test_out_of_range(self, pool, index):
        with pytest.raises(ConstantPoolIndexError) as exc_info:
            pool.get_entry(index)
        assert exc_info.value.index == index

    def test_add_entry_returns_index(self):
        cp = ConstantPool()
        assert cp.add_entry(LongEntry(1)) == 1
        assert cp.add_entry(Utf8Entry("a")) == 3
        assert cp.add_entry(DoubleEntry(1.0)) == 4
        assert cp.add_entry(IntegerEntry(1)) == 6
        assert list(cp)[1] is PHANTOM
        assert list(cp)[4] is PHANTOM

    def test_iter_indices_skips_phantoms(self, pool):
        assert list(pool.iter_indices()) == [1, 2, 3, 4, 6, 8, 9, 10, 11, 12, 13, 14]

    def test_utf8_at(self, pool):
        assert pool.utf8_at(10) == "joe"
        with pytest.raises(InvalidClassDataError) as exc_info:
            pool.utf8_at(2)
        assert exc_info.value.is_constant_pool_index

    def test_class_name_at(self, pool):
        assert pool.class_name_at(8) == "hey"
        with pytest.raises(InvalidClassDataError):
            pool.class_name_at(1)


class TestText:
    def test_text_of_values(self, pool):
        assert pool.text_of(1) == "hey"
        assert pool.text_of(2) == "1"
        assert pool.text_of(3) == "2.1"
        assert pool.text_of(4) == "123"
        assert pool.text_of(6) == "3.56"
        assert pool.text_of(8) == "hey"
        assert pool.text_of(9) == "hey"

    def test_text_of_member_reference(self):
        cp = ConstantPool()
        cp.add_entry(Utf8Entry("java/io/PrintStream"))
        cp.add_entry(ClassReference(1))
        cp.add_entry(Utf8Entry("println"))
        cp.add_entry(Utf8Entry("(Ljava/lang/String;)V"))
        cp.add_entry(NameAndTypeDescriptor(3, 4))
        cp.add_entry(MethodReference(2, 5))
        assert cp.text_of(5) == "println: (Ljava/lang/String;)V"
        assert cp.text_of(6) == "java/io/PrintStream.println: (Ljava/lang/String;)V"

    def test_reference_cycle(self):
        cp = ConstantPool()
        cp.add_entry(StringReference(2))
        cp.add_entry(StringReference(1))
        with pytest.raises(InvalidClassDataError):
            cp.text_of(1)

    def test_format_float32(self):
        assert format_float32(2.0999999046325684) == "2.1"
        assert format_float32(1.0) == "1.0"
        assert format_float32(float("inf")) == "inf"


class TestRender:
    def test_render_entry(self, pool):
        assert pool.render_entry(1) == 'String: "hey"'
        assert pool.render_entry(2) == "Integer: 1"
        assert pool.render_entry(3) == "Float: 2.1"
        assert pool.render_entry(8) == 'ClassReference: 1 => (String: "hey")'
        assert pool.render_entry(11) == (
            'FieldReference: 1, 10 => (String: "hey"), (String: "joe")')

    def test_render_with_placeholders(self):
        cp = ConstantPool()
        cp.add_entry(Utf8Entry("a"))
        cp.add_entry(LongEntry(7))
        cp.add_entry(ClassReference(9))
        lines = cp.render().splitlines()
        assert lines[0] == "Constant pool: (size: 4)"
        assert lines[1] == '    1, String: "a"'
        assert lines[2] == "    2, Long: 7"
        assert lines[3] == "    3, ------ PhantomEntry ------"
        assert lines[4].startswith("    4, <unresolvable: ")


class TestModernEntries:
    @pytest.fixture
    def modern_pool(self):
        cp = ConstantPool()
        cp.add_entry(Utf8Entry("java.base"))
        cp.add_entry(ModuleReference(1))
        cp.add_entry(Utf8Entry("com/example/api"))
        cp.add_entry(PackageReference(3))
        cp.add_entry(Utf8Entry("VALUE"))
        cp.add_entry(Utf8Entry("I"))
        cp.add_entry(NameAndTypeDescriptor(5, 6))
        cp.add_entry(DynamicReference(0, 7))
        return cp

    def test_text_of(self, modern_pool):
        assert modern_pool.text_of(2) == "java.base"
        assert modern_pool.text_of(4) == "com/example/api"
        assert modern_pool.text_of(8) == "#0:VALUE: I"

    def test_render_entry(self, modern_pool):
        assert modern_pool.render_entry(2) == 'ModuleReference: 1 => (String: "java.base")'
        assert modern_pool.render_entry(4) == 'PackageReference: 3 => (String: "com/example/api")'
        assert modern_pool.render_entry(8).startswith("DynamicReference: bootstrap 0, 7 => ")


class TestReadOnly:
    def test_frozen_pool_rejects_entries(self):
        cp = ConstantPool()
        cp.add_entry(Utf8Entry("a"))
        assert not cp.frozen
        cp.freeze()
        assert cp.frozen
        with pytest.raises(ValueError):
            cp.add_entry(Utf8Entry("b"))
        assert len(cp) == 1


class TestCopying:
    @pytest.fixture
    def wide_pool(self):
        cp = ConstantPool()
        cp.add_entry(LongEntry(1))
        cp.add_entry(Utf8Entry("x"))
        return cp

    @pytest.mark.parametrize("duplicate", [
        copy.copy,
        copy.deepcopy,
        lambda cp: pickle.loads(pickle.dumps(cp)),
    ], ids=["copy", "deepcopy", "pickle"])
    def test_phantom_slot_survives(self, wide_pool, duplicate):
        cp = duplicate(wide_pool)
        assert list(cp)[1] is PHANTOM
        with pytest.raises(PhantomEntryError):
            cp.get_entry(2)
        assert cp.get_entry(3) == Utf8Entry("x")
        assert list(cp.iter_indices()) == [1, 3]
