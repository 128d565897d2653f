"""
Bytecode instruction decoder.

Turns the code array of a method into (address, Instruction) pairs.
Instruction lengths depend on the opcode, and for tableswitch and
lookupswitch also on the instruction's own address (operands are
4-byte aligned relative to the start of the code). Jump offsets are
resolved to absolute addresses. See JVM Spec chapter 6.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator

from .buffer import ByteCursor
from .errors import (
    InvalidClassDataError,
    InvalidInstructionPaddingError,
    InvalidJumpOffsetError,
    MissingOperandsError,
    UnexpectedEndOfDataError,
    UnknownOpcodeError,
)


class Opcode(IntEnum):
    NOP = 0x00
    ACONST_NULL = 0x01
    ICONST_M1 = 0x02
    ICONST_0 = 0x03
    ICONST_1 = 0x04
    ICONST_2 = 0x05
    ICONST_3 = 0x06
    ICONST_4 = 0x07
    ICONST_5 = 0x08
    LCONST_0 = 0x09
    LCONST_1 = 0x0A
    FCONST_0 = 0x0B
    FCONST_1 = 0x0C
    FCONST_2 = 0x0D
    DCONST_0 = 0x0E
    DCONST_1 = 0x0F
    BIPUSH = 0x10
    SIPUSH = 0x11
    LDC = 0x12
    LDC_W = 0x13
    LDC2_W = 0x14
    ILOAD = 0x15
    LLOAD = 0x16
    FLOAD = 0x17
    DLOAD = 0x18
    ALOAD = 0x19
    ILOAD_0 = 0x1A
    ILOAD_1 = 0x1B
    ILOAD_2 = 0x1C
    ILOAD_3 = 0x1D
    LLOAD_0 = 0x1E
    LLOAD_1 = 0x1F
    LLOAD_2 = 0x20
    LLOAD_3 = 0x21
    FLOAD_0 = 0x22
    FLOAD_1 = 0x23
    FLOAD_2 = 0x24
    FLOAD_3 = 0x25
    DLOAD_0 = 0x26
    DLOAD_1 = 0x27
    DLOAD_2 = 0x28
    DLOAD_3 = 0x29
    ALOAD_0 = 0x2A
    ALOAD_1 = 0x2B
    ALOAD_2 = 0x2C
    ALOAD_3 = 0x2D
    IALOAD = 0x2E
    LALOAD = 0x2F
    FALOAD = 0x30
    DALOAD = 0x31
    AALOAD = 0x32
    BALOAD = 0x33
    CALOAD = 0x34
    SALOAD = 0x35
    ISTORE = 0x36
    LSTORE = 0x37
    FSTORE = 0x38
    DSTORE = 0x39
    ASTORE = 0x3A
    ISTORE_0 = 0x3B
    ISTORE_1 = 0x3C
    ISTORE_2 = 0x3D
    ISTORE_3 = 0x3E
    LSTORE_0 = 0x3F
    LSTORE_1 = 0x40
    LSTORE_2 = 0x41
    LSTORE_3 = 0x42
    FSTORE_0 = 0x43
    FSTORE_1 = 0x44
    FSTORE_2 = 0x45
    FSTORE_3 = 0x46
    DSTORE_0 = 0x47
    DSTORE_1 = 0x48
    DSTORE_2 = 0x49
    DSTORE_3 = 0x4A
    ASTORE_0 = 0x4B
    ASTORE_1 = 0x4C
    ASTORE_2 = 0x4D
    ASTORE_3 = 0x4E
    IASTORE = 0x4F
    LASTORE = 0x50
    FASTORE = 0x51
    DASTORE = 0x52
    AASTORE = 0x53
    BASTORE = 0x54
    CASTORE = 0x55
    SASTORE = 0x56
    POP = 0x57
    POP2 = 0x58
    DUP = 0x59
    DUP_X1 = 0x5A
    DUP_X2 = 0x5B
    DUP2 = 0x5C
    DUP2_X1 = 0x5D
    DUP2_X2 = 0x5E
    SWAP = 0x5F
    IADD = 0x60
    LADD = 0x61
    FADD = 0x62
    DADD = 0x63
    ISUB = 0x64
    LSUB = 0x65
    FSUB = 0x66
    DSUB = 0x67
    IMUL = 0x68
    LMUL = 0x69
    FMUL = 0x6A
    DMUL = 0x6B
    IDIV = 0x6C
    LDIV = 0x6D
    FDIV = 0x6E
    DDIV = 0x6F
    IREM = 0x70
    LREM = 0x71
    FREM = 0x72
    DREM = 0x73
    INEG = 0x74
    LNEG = 0x75
    FNEG = 0x76
    DNEG = 0x77
    ISHL = 0x78
    LSHL = 0x79
    ISHR = 0x7A
    LSHR = 0x7B
    IUSHR = 0x7C
    LUSHR = 0x7D
    IAND = 0x7E
    LAND = 0x7F
    IOR = 0x80
    LOR = 0x81
    IXOR = 0x82
    LXOR = 0x83
    IINC = 0x84
    I2L = 0x85
    I2F = 0x86
    I2D = 0x87
    L2I = 0x88
    L2F = 0x89
    L2D = 0x8A
    F2I = 0x8B
    F2L = 0x8C
    F2D = 0x8D
    D2I = 0x8E
    D2L = 0x8F
    D2F = 0x90
    I2B = 0x91
    I2C = 0x92
    I2S = 0x93
    LCMP = 0x94
    FCMPL = 0x95
    FCMPG = 0x96
    DCMPL = 0x97
    DCMPG = 0x98
    IFEQ = 0x99
    IFNE = 0x9A
    IFLT = 0x9B
    IFGE = 0x9C
    IFGT = 0x9D
    IFLE = 0x9E
    IF_ICMPEQ = 0x9F
    IF_ICMPNE = 0xA0
    IF_ICMPLT = 0xA1
    IF_ICMPGE = 0xA2
    IF_ICMPGT = 0xA3
    IF_ICMPLE = 0xA4
    IF_ACMPEQ = 0xA5
    IF_ACMPNE = 0xA6
    GOTO = 0xA7
    JSR = 0xA8
    RET = 0xA9
    TABLESWITCH = 0xAA
    LOOKUPSWITCH = 0xAB
    IRETURN = 0xAC
    LRETURN = 0xAD
    FRETURN = 0xAE
    DRETURN = 0xAF
    ARETURN = 0xB0
    RETURN = 0xB1
    GETSTATIC = 0xB2
    PUTSTATIC = 0xB3
    GETFIELD = 0xB4
    PUTFIELD = 0xB5
    INVOKEVIRTUAL = 0xB6
    INVOKESPECIAL = 0xB7
    INVOKESTATIC = 0xB8
    INVOKEINTERFACE = 0xB9
    INVOKEDYNAMIC = 0xBA
    NEW = 0xBB
    NEWARRAY = 0xBC
    ANEWARRAY = 0xBD
    ARRAYLENGTH = 0xBE
    ATHROW = 0xBF
    CHECKCAST = 0xC0
    INSTANCEOF = 0xC1
    MONITORENTER = 0xC2
    MONITOREXIT = 0xC3
    WIDE = 0xC4
    MULTIANEWARRAY = 0xC5
    IFNULL = 0xC6
    IFNONNULL = 0xC7
    GOTO_W = 0xC8
    JSR_W = 0xC9



# Operand layouts:
#   b  signed byte immediate       s  signed short immediate
#   u  unsigned byte (local index, ldc index, array type, count)
#   c  unsigned short constant pool index
#   o  16-bit jump offset          O  32-bit jump offset
#   0  reserved byte that must be zero
OPERAND_LAYOUTS: dict[Opcode, str] = {
    Opcode.BIPUSH: "b",
    Opcode.SIPUSH: "s",
    Opcode.LDC: "u",
    Opcode.LDC_W: "c",
    Opcode.LDC2_W: "c",
    Opcode.ILOAD: "u",
    Opcode.LLOAD: "u",
    Opcode.FLOAD: "u",
    Opcode.DLOAD: "u",
    Opcode.ALOAD: "u",
    Opcode.ISTORE: "u",
    Opcode.LSTORE: "u",
    Opcode.FSTORE: "u",
    Opcode.DSTORE: "u",
    Opcode.ASTORE: "u",
    Opcode.IINC: "ub",
    Opcode.IFEQ: "o",
    Opcode.IFNE: "o",
    Opcode.IFLT: "o",
    Opcode.IFGE: "o",
    Opcode.IFGT: "o",
    Opcode.IFLE: "o",
    Opcode.IF_ICMPEQ: "o",
    Opcode.IF_ICMPNE: "o",
    Opcode.IF_ICMPLT: "o",
    Opcode.IF_ICMPGE: "o",
    Opcode.IF_ICMPGT: "o",
    Opcode.IF_ICMPLE: "o",
    Opcode.IF_ACMPEQ: "o",
    Opcode.IF_ACMPNE: "o",
    Opcode.GOTO: "o",
    Opcode.JSR: "o",
    Opcode.RET: "u",
    Opcode.GETSTATIC: "c",
    Opcode.PUTSTATIC: "c",
    Opcode.GETFIELD: "c",
    Opcode.PUTFIELD: "c",
    Opcode.INVOKEVIRTUAL: "c",
    Opcode.INVOKESPECIAL: "c",
    Opcode.INVOKESTATIC: "c",
    Opcode.INVOKEINTERFACE: "cu0",
    Opcode.INVOKEDYNAMIC: "c00",
    Opcode.NEW: "c",
    Opcode.NEWARRAY: "u",
    Opcode.ANEWARRAY: "c",
    Opcode.CHECKCAST: "c",
    Opcode.INSTANCEOF: "c",
    Opcode.MULTIANEWARRAY: "cu",
    Opcode.IFNULL: "o",
    Opcode.IFNONNULL: "o",
    Opcode.GOTO_W: "O",
    Opcode.JSR_W: "O",
}

# Opcodes that may follow wide
WIDE_OPCODES = frozenset({
    Opcode.ILOAD, Opcode.LLOAD, Opcode.FLOAD, Opcode.DLOAD, Opcode.ALOAD,
    Opcode.ISTORE, Opcode.LSTORE, Opcode.FSTORE, Opcode.DSTORE, Opcode.ASTORE,
    Opcode.RET, Opcode.IINC,
})

_OPCODES = {op.value: op for op in Opcode}


@dataclass(frozen=True)
class TableSwitch:
    default: int
    low: int
    high: int
    targets: tuple[int, ...]

    def __str__(self) -> str:
        cases = ", ".join(f"{self.low + i}: {t}" for i, t in enumerate(self.targets))
        return f"{{{cases}, default: {self.default}}}"


@dataclass(frozen=True)
class LookupSwitch:
    default: int
    pairs: tuple[tuple[int, int], ...]  # (match, target)

    def __str__(self) -> str:
        cases = ", ".join(f"{match}: {target}" for match, target in self.pairs)
        return f"{{{cases}, default: {self.default}}}" if cases else f"{{default: {self.default}}}"


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction. Jump operands hold absolute target addresses."""
    opcode: Opcode
    operands: tuple = ()
    wide: bool = False

    @property
    def mnemonic(self) -> str:
        return self.opcode.name.lower()

    def __str__(self) -> str:
        name = f"wide {self.mnemonic}" if self.wide else self.mnemonic
        if not self.operands:
            return name
        return f"{name} " + ", ".join(str(op) for op in self.operands)


class _InstructionDecoder:
    """Walks a code array, tracking the address of the current instruction."""

    def __init__(self, code: bytes):
        self.code = code
        self.cursor = ByteCursor(code)
        self.address = 0

    def _target(self, offset: int) -> int:
        target = self.address + offset
        if not 0 <= target < len(self.code):
            raise InvalidJumpOffsetError(self.address, target)
        return target

    def _opcode(self, value: int, address: int) -> Opcode:
        try:
            return _OPCODES[value]
        except KeyError:
            raise UnknownOpcodeError(address, value) from None

    def decode(self) -> Iterator[tuple[int, Instruction]]:
        while self.cursor.has_more_data():
            self.address = self.cursor.position
            opcode = self._opcode(self.cursor.read_u8(), self.address)
            try:
                instruction = self._decode_operands(opcode)
            except UnexpectedEndOfDataError as e:
                raise MissingOperandsError(self.address) from e
            yield self.address, instruction

    def _decode_operands(self, opcode: Opcode) -> Instruction:
        if opcode == Opcode.TABLESWITCH:
            return Instruction(opcode, (self._table_switch(),))
        elif opcode == Opcode.LOOKUPSWITCH:
            return Instruction(opcode, (self._lookup_switch(),))
        elif opcode == Opcode.WIDE:
            return self._wide()

        operands = []
        for kind in OPERAND_LAYOUTS.get(opcode, ""):
            if kind == "b":
                operands.append(self.cursor.read_i8())
            elif kind == "s":
                operands.append(self.cursor.read_i16())
            elif kind == "u":
                operands.append(self.cursor.read_u8())
            elif kind == "c":
                operands.append(self.cursor.read_u16())
            elif kind == "o":
                operands.append(self._target(self.cursor.read_i16()))
            elif kind == "O":
                operands.append(self._target(self.cursor.read_i32()))
            elif kind == "0":
                if self.cursor.read_u8() != 0:
                    raise InvalidInstructionPaddingError(opcode.name.lower(), self.address)
        return Instruction(opcode, tuple(operands))

    def _align(self):
        padding = (4 - self.cursor.position % 4) % 4
        self.cursor.read_bytes(padding)

    def _table_switch(self) -> TableSwitch:
        self._align()
        default = self._target(self.cursor.read_i32())
        low = self.cursor.read_i32()
        high = self.cursor.read_i32()
        if low > high:
            raise InvalidClassDataError(f"tableswitch at address {self.address} has low > high")
        targets = tuple(self._target(self.cursor.read_i32()) for _ in range(high - low + 1))
        return TableSwitch(default, low, high, targets)

    def _lookup_switch(self) -> LookupSwitch:
        self._align()
        default = self._target(self.cursor.read_i32())
        npairs = self.cursor.read_i32()
        if npairs < 0:
            raise InvalidClassDataError(f"lookupswitch at address {self.address} has negative npairs")
        pairs = []
        for _ in range(npairs):
            match = self.cursor.read_i32()
            pairs.append((match, self._target(self.cursor.read_i32())))
        return LookupSwitch(default, tuple(pairs))

    def _wide(self) -> Instruction:
        opcode = self._opcode(self.cursor.read_u8(), self.address + 1)
        if opcode not in WIDE_OPCODES:
            raise UnknownOpcodeError(self.address + 1, opcode.value)
        index = self.cursor.read_u16()
        if opcode == Opcode.IINC:
            return Instruction(opcode, (index, self.cursor.read_i16()), wide=True)
        return Instruction(opcode, (index,), wide=True)


def iter_instructions(code: bytes) -> Iterator[tuple[int, Instruction]]:
    """Lazily decode code into (address, Instruction) pairs, starting at address 0."""
    return _InstructionDecoder(code).decode()


def parse_instructions(code: bytes) -> list[tuple[int, Instruction]]:
    """Decode a whole code array."""
    return list(iter_instructions(code))
