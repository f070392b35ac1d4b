"""
Reader for kanim build/anim files.

Decodes a _build.bytes or _anim.bytes file back into the structures the
encoders produce, for inspection from the command line and for checks in the
test suite. Symbols are read with the frame count stored in their header, as
the engine does.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import List, Tuple, Union

import config
from kanim.anim import ANIM_MAGIC, AnimAsset, AnimBank, AnimElement, AnimFrame
from kanim.bild import BILD_MAGIC, BildAsset, BildFrame, BildSymbol
from kanim.errors import StructuralFormatError

NameTable = List[Tuple[int, str]]


class BinaryReader:
    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def _take(self, size: int) -> bytes:
        if self.pos + size > len(self.data):
            raise StructuralFormatError(f"Unexpected end of file at 0x{self.pos:04X} (wanted {size} bytes)")
        chunk = self.data[self.pos:self.pos + size]
        self.pos += size
        return chunk

    def read_magic(self) -> str:
        return self._take(4).decode("ascii", errors="replace")

    def read_int(self) -> int:
        return struct.unpack("<i", self._take(4))[0]

    def read_float(self) -> float:
        return struct.unpack("<f", self._take(4))[0]

    def read_string(self) -> str:
        length = self.read_int()
        if length < 0:
            raise StructuralFormatError(f"Negative string length {length} at 0x{self.pos - 4:04X}")
        return self._take(length).decode("ascii", errors="replace")

    def read_name_table(self) -> NameTable:
        return [(self.read_int(), self.read_string()) for _ in range(self.read_int())]


def _expect_header(reader: BinaryReader, magic: str, version: int):
    found = reader.read_magic()
    if found != magic:
        raise StructuralFormatError(f"Expected '{magic}' file, found magic '{found}'")
    found_version = reader.read_int()
    if found_version != version:
        raise StructuralFormatError(f"Unsupported {magic} version {found_version} (expected {version})")


def read_bild(data: bytes) -> Tuple[BildAsset, NameTable]:
    reader = BinaryReader(data)
    _expect_header(reader, BILD_MAGIC, config.BILD_VERSION)
    asset = BildAsset(
        version=config.BILD_VERSION,
        symbol_count=reader.read_int(),
        frame_count=reader.read_int(),
        entity_name=reader.read_string(),
    )

    for _ in range(asset.symbol_count):
        symbol = BildSymbol(
            hash=reader.read_int(),
            path_hash=reader.read_int(),
            color=reader.read_int(),
            flags=reader.read_int(),
            frame_count=reader.read_int(),
        )
        for _ in range(symbol.frame_count):
            symbol.frames.append(BildFrame(
                source_frame_index=reader.read_int(),
                duration=reader.read_int(),
                build_image_index=reader.read_int(),
                pivot_x=reader.read_float(),
                pivot_y=reader.read_float(),
                pivot_width=reader.read_float(),
                pivot_height=reader.read_float(),
                u1=reader.read_float(),
                v1=reader.read_float(),
                u2=reader.read_float(),
                v2=reader.read_float(),
            ))
        asset.symbols.append(symbol)

    return asset, reader.read_name_table()


def read_anim(data: bytes) -> Tuple[AnimAsset, NameTable]:
    reader = BinaryReader(data)
    _expect_header(reader, ANIM_MAGIC, config.ANIM_VERSION)
    asset = AnimAsset(
        version=config.ANIM_VERSION,
        elements_reserved=reader.read_int(),
        frames_reserved=reader.read_int(),
    )
    bank_count = reader.read_int()

    for _ in range(bank_count):
        bank = AnimBank(name=reader.read_string(), hash=reader.read_int(), frame_rate=reader.read_float())
        for _ in range(reader.read_int()):
            frame = AnimFrame(
                center_x=reader.read_float(),
                center_y=reader.read_float(),
                width=reader.read_float(),
                height=reader.read_float(),
            )
            for _ in range(reader.read_int()):
                element = AnimElement(
                    image_hash=reader.read_int(),
                    frame_index=reader.read_int(),
                    layer_hash=reader.read_int(),
                    flags=reader.read_int(),
                )
                element.color = tuple(reader.read_float() for _ in range(4))
                (element.m1, element.m2, element.m3,
                 element.m4, element.m5, element.m6) = (reader.read_float() for _ in range(6))
                element.order = reader.read_float()
                frame.elements.append(element)
            bank.frames.append(frame)
        asset.banks.append(bank)

    asset.max_visible_symbol_frames = reader.read_int()
    return asset, reader.read_name_table()


def read_kanim_file(path: Union[str, Path]):
    """
    Decode a build or anim file, dispatching on its magic tag.

    Returns:
        (magic, asset, name table)
    """
    with open(path, "rb") as f:
        data = f.read()
    magic = data[:4].decode("ascii", errors="replace")
    if magic == BILD_MAGIC:
        return (magic,) + read_bild(data)
    if magic == ANIM_MAGIC:
        return (magic,) + read_anim(data)
    raise StructuralFormatError(f"{path} is neither a BILD nor an ANIM file (magic '{magic}')")
