"""
Little-endian writer for the build/anim binary files.

Integers are signed 32-bit, floats IEEE-754 single precision, strings a
32-bit byte count followed by raw ASCII. Magic tags are written bare.
"""

from __future__ import annotations

import struct
from typing import TYPE_CHECKING

from config import debug_print
from kanim.errors import NonAsciiStringError

if TYPE_CHECKING:
    from kanim.hashing import NameHashTable


def encode_ascii(value: str) -> bytes:
    try:
        return value.encode("ascii")
    except UnicodeEncodeError as e:
        raise NonAsciiStringError(f"Cannot write non-ASCII string {value!r} to a kanim file") from e


class BinaryWriter:
    """Accumulates a binary file in memory."""

    def __init__(self):
        self.buf = bytearray()

    def write_magic(self, tag: str):
        """Write a 4-character tag with no length prefix."""
        self.buf.extend(encode_ascii(tag))

    def write_int(self, value: int):
        self.buf.extend(struct.pack("<i", int(value)))

    def write_float(self, value: float):
        self.buf.extend(struct.pack("<f", float(value)))

    def write_string(self, value: str):
        encoded = encode_ascii(value)
        self.write_int(len(encoded))
        self.buf.extend(encoded)

    def write_name_table(self, hash_table: NameHashTable):
        """Trailing (hash, name) table shared by both file types."""
        self.write_int(len(hash_table))
        for name, value in hash_table.items():
            debug_print(f"{value}={name}")
            self.write_int(value)
            self.write_string(name)

    def getvalue(self) -> bytes:
        return bytes(self.buf)
