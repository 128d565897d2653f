"""
Decoder for the JVM's modified UTF-8.

Differences from standard UTF-8 (JVM Spec 4.4.7):
- NUL is written as the two-byte form C0 80, never as a raw zero byte.
- Code points above U+FFFF are written as a UTF-16 surrogate pair, each
  half encoded as a three-byte sequence. Four-byte forms never occur.
"""

from .errors import InvalidModifiedUtf8Error


def _continuation(data, i: int) -> int:
    if i >= len(data):
        raise InvalidModifiedUtf8Error(i)
    byte = data[i]
    if byte & 0xC0 != 0x80:
        raise InvalidModifiedUtf8Error(i)
    return byte & 0x3F


def _code_units(data):
    """Yield the UTF-16 code units encoded in data."""
    i = 0
    while i < len(data):
        byte = data[i]
        if 0x01 <= byte <= 0x7F:
            yield byte
            i += 1
        elif byte & 0xE0 == 0xC0:
            unit = ((byte & 0x1F) << 6) | _continuation(data, i + 1)
            # Only C0 80 may encode a value below 0x80
            if unit < 0x80 and unit != 0:
                raise InvalidModifiedUtf8Error(i)
            yield unit
            i += 2
        elif byte & 0xF0 == 0xE0:
            unit = (((byte & 0x0F) << 12)
                    | (_continuation(data, i + 1) << 6)
                    | _continuation(data, i + 2))
            if unit < 0x800:
                raise InvalidModifiedUtf8Error(i)
            yield unit
            i += 3
        else:
            # Raw NUL, stray continuation byte or a four-byte lead
            raise InvalidModifiedUtf8Error(i)


def decode(data) -> str:
    """Decode modified UTF-8 bytes into a str.

    Surrogate pairs are joined into a single code point. Unpaired
    surrogates are kept as lone surrogates, since Java strings may hold them.
    """
    chars = []
    pending_high = None
    for unit in _code_units(data):
        if pending_high is not None:
            if 0xDC00 <= unit <= 0xDFFF:
                chars.append(chr(0x10000 + ((pending_high - 0xD800) << 10) + (unit - 0xDC00)))
                pending_high = None
                continue
            chars.append(chr(pending_high))
            pending_high = None
        if 0xD800 <= unit <= 0xDBFF:
            pending_high = unit
        else:
            chars.append(chr(unit))
    if pending_high is not None:
        chars.append(chr(pending_high))
    return "".join(chars)
