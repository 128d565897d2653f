"""
Exceptions raised while decoding a class file.
"""


class ClassFileError(Exception):
    """Error while decoding a class file."""
    pass


class UnexpectedEndOfDataError(ClassFileError):
    """A read needed more bytes than the input has left."""

    def __init__(self, requested: int, remaining: int):
        self.requested = requested
        self.remaining = remaining
        super().__init__(
            f"unexpected end of data: needed {requested} byte(s), {remaining} remaining")


class InvalidModifiedUtf8Error(ClassFileError):
    """A Utf8 constant is not valid modified UTF-8."""

    def __init__(self, offset: int):
        self.offset = offset
        super().__init__(f"invalid modified UTF-8 string (bad byte at offset {offset})")


class ConstantPoolIndexError(ClassFileError):
    """Constant pool index is zero or past the end of the pool."""

    def __init__(self, index: int):
        self.index = index
        super().__init__(f"The index={index} of constant pool is out of range")


class PhantomEntryError(ClassFileError):
    """Constant pool index points at the unusable second slot of a Long or Double."""

    def __init__(self, index: int):
        self.index = index
        super().__init__(
            f"The index={index} points to a phantom entry; the second slot of a "
            f"Long or Double cannot be referenced")


class InvalidFieldDescriptorError(ClassFileError):
    def __init__(self, descriptor: str):
        self.descriptor = descriptor
        super().__init__(f"The field descriptor={descriptor!r} is invalid")


class InvalidMethodDescriptorError(ClassFileError):
    def __init__(self, descriptor: str):
        self.descriptor = descriptor
        super().__init__(f"The method descriptor={descriptor!r} is invalid")


class ClassFileVersionError(ClassFileError):
    """The major version is not one of the known JDK releases."""

    def __init__(self, major: int, minor: int):
        self.major = major
        self.minor = minor
        super().__init__(
            f"The major_version={major}, minor_version={minor} does not match "
            f"any supported SDK version")


class UnknownOpcodeError(ClassFileError):
    def __init__(self, address: int, opcode: int):
        self.address = address
        self.opcode = opcode
        super().__init__(f"cannot read instruction 0x{opcode:02x} at address={address}")


class InvalidInstructionPaddingError(ClassFileError):
    """invokeinterface/invokedynamic is missing its mandatory zero byte."""

    def __init__(self, mnemonic: str, address: int):
        self.mnemonic = mnemonic
        self.address = address
        super().__init__(
            f"expected a zero byte after {mnemonic} and the index at address {address}")


class MissingOperandsError(ClassFileError):
    def __init__(self, address: int):
        self.address = address
        super().__init__(f"cannot find arguments for instruction at address={address}")


class InvalidJumpOffsetError(ClassFileError):
    def __init__(self, address: int, target: int):
        self.address = address
        self.target = target
        super().__init__(f"invalid jump offset at address={address} (target {target})")


class InvalidClassDataError(ClassFileError):
    """Structurally invalid class data, e.g. a reference to the wrong kind of constant."""

    def __init__(self, name: str, is_constant_pool_index: bool = False):
        self.name = name
        self.is_constant_pool_index = is_constant_pool_index
        super().__init__(
            f"Invalid class data={name!r}, invalid constant pool index={is_constant_pool_index}")


class LineNumberLookupError(ClassFileError):
    """No line number entry starts at or before the program counter."""

    def __init__(self, pc: int):
        self.pc = pc
        super().__init__(f"no line number entry at or before pc={pc}")
