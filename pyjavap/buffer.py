"""
Sequential big-endian reader over an immutable byte buffer.
"""

import struct

from . import mutf8
from .errors import UnexpectedEndOfDataError


class ByteCursor:
    """Reads fixed-width values and strings from class file data.

    A failed read raises and leaves the position where it was.
    """

    def __init__(self, data: bytes | bytearray | memoryview):
        self._data = memoryview(data)
        self._pos = 0

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def has_more_data(self) -> bool:
        return self._pos < len(self._data)

    def _check(self, size: int):
        if size < 0 or size > self.remaining:
            raise UnexpectedEndOfDataError(size, self.remaining)

    def _unpack(self, fmt: str, size: int):
        self._check(size)
        val = struct.unpack_from(fmt, self._data, self._pos)[0]
        self._pos += size
        return val

    def read_u8(self) -> int:
        return self._unpack(">B", 1)

    def read_i8(self) -> int:
        return self._unpack(">b", 1)

    def read_u16(self) -> int:
        return self._unpack(">H", 2)

    def read_i16(self) -> int:
        return self._unpack(">h", 2)

    def read_u32(self) -> int:
        return self._unpack(">I", 4)

    def read_i32(self) -> int:
        return self._unpack(">i", 4)

    def read_i64(self) -> int:
        return self._unpack(">q", 8)

    def read_f32(self) -> float:
        return self._unpack(">f", 4)

    def read_f64(self) -> float:
        return self._unpack(">d", 8)

    def read_bytes(self, length: int) -> memoryview:
        """Return the next length bytes as a view, without copying."""
        self._check(length)
        val = self._data[self._pos:self._pos + length]
        self._pos += length
        return val

    def read_text(self, length: int) -> str:
        """Read length bytes of modified UTF-8."""
        self._check(length)
        text = mutf8.decode(self._data[self._pos:self._pos + length])
        self._pos += length
        return text

    read_utf8 = read_text

    def sub_cursor(self, length: int) -> "ByteCursor":
        """Read length bytes and return a cursor confined to them."""
        return ByteCursor(self.read_bytes(length))
