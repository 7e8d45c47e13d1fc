"""Decoder for the Erlang external term format (term_to_binary output).

Covers the tags the compiler writes into the Attr chunk of a BEAM file.
Pids, ports, references and funs are rejected.
"""

from __future__ import annotations

import struct
import zlib
from typing import Any

from appupgen.terms.types import Atom, map_key

VERSION = 131

NEW_FLOAT_EXT = 70
BIT_BINARY_EXT = 77
COMPRESSED = 80
SMALL_INTEGER_EXT = 97
INTEGER_EXT = 98
FLOAT_EXT = 99
ATOM_EXT = 100
SMALL_TUPLE_EXT = 104
LARGE_TUPLE_EXT = 105
NIL_EXT = 106
STRING_EXT = 107
LIST_EXT = 108
BINARY_EXT = 109
SMALL_BIG_EXT = 110
LARGE_BIG_EXT = 111
MAP_EXT = 116
ATOM_UTF8_EXT = 118
SMALL_ATOM_UTF8_EXT = 119
SMALL_ATOM_EXT = 115


class ExternalTermError(ValueError):
    """Bytes are not a decodable external term."""


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def take(self, n: int) -> bytes:
        if n < 0 or self._pos + n > len(self._data):
            raise ExternalTermError(f"truncated term at offset {self._pos}")
        chunk = self._data[self._pos : self._pos + n]
        self._pos += n
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def u16(self) -> int:
        return int(struct.unpack(">H", self.take(2))[0])

    def u32(self) -> int:
        return int(struct.unpack(">I", self.take(4))[0])

    def i32(self) -> int:
        return int(struct.unpack(">i", self.take(4))[0])


def _decode_big(reader: _Reader, n: int) -> int:
    sign = reader.u8()
    value = int.from_bytes(reader.take(n), "little")
    return -value if sign else value


def _decode(reader: _Reader) -> Any:
    tag = reader.u8()
    if tag == SMALL_INTEGER_EXT:
        return reader.u8()
    if tag == INTEGER_EXT:
        return reader.i32()
    if tag == NEW_FLOAT_EXT:
        return float(struct.unpack(">d", reader.take(8))[0])
    if tag == FLOAT_EXT:
        return float(reader.take(31).rstrip(b"\x00").decode("ascii"))
    if tag in (ATOM_EXT, ATOM_UTF8_EXT):
        return _atom(reader.take(reader.u16()), tag == ATOM_EXT)
    if tag in (SMALL_ATOM_EXT, SMALL_ATOM_UTF8_EXT):
        return _atom(reader.take(reader.u8()), tag == SMALL_ATOM_EXT)
    if tag == SMALL_TUPLE_EXT:
        return tuple(_decode(reader) for _ in range(reader.u8()))
    if tag == LARGE_TUPLE_EXT:
        return tuple(_decode(reader) for _ in range(reader.u32()))
    if tag == NIL_EXT:
        return []
    if tag == STRING_EXT:
        # A list of small integers, printable or not
        return reader.take(reader.u16()).decode("latin-1")
    if tag == LIST_EXT:
        count = reader.u32()
        items = [_decode(reader) for _ in range(count)]
        tail = _decode(reader)
        if tail != []:
            raise ExternalTermError("improper lists are not supported")
        return items
    if tag == BINARY_EXT:
        return reader.take(reader.u32())
    if tag == BIT_BINARY_EXT:
        size = reader.u32()
        reader.u8()  # bits in last byte
        return reader.take(size)
    if tag == SMALL_BIG_EXT:
        return _decode_big(reader, reader.u8())
    if tag == LARGE_BIG_EXT:
        return _decode_big(reader, reader.u32())
    if tag == MAP_EXT:
        result: dict[Any, Any] = {}
        for _ in range(reader.u32()):
            key = _decode(reader)
            result[map_key(key)] = _decode(reader)
        return result
    raise ExternalTermError(f"unsupported term tag {tag}")


def _atom(raw: bytes, latin1: bool) -> Atom:
    return Atom(raw.decode("latin-1" if latin1 else "utf-8"))


def binary_to_term(data: bytes) -> Any:
    """Decode one versioned external term.

    Raises:
        ExternalTermError: On a bad version byte, unknown tag or truncated input.
    """
    reader = _Reader(data)
    if reader.u8() != VERSION:
        raise ExternalTermError("missing external term format version byte")
    if data[1:2] == bytes([COMPRESSED]):
        reader.take(1)
        size = reader.u32()
        try:
            inflated = zlib.decompress(reader.take(reader.remaining))
        except zlib.error as e:
            raise ExternalTermError(f"bad compressed term: {e}") from e
        if len(inflated) != size:
            raise ExternalTermError("compressed term size mismatch")
        reader = _Reader(inflated)
    return _decode(reader)
