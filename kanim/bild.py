"""
BILD encoder

Builds the sprite directory of a kanim build file: one symbol per run of
same-named atlas entries, one frame per entry with its UV rectangle in the
packed atlas and its pivot in engine units.

Layout:
    'BILD'
    version, symbol count, frame count (int)
    build name (string)
    per symbol: hash, path hash, color, flags, frame count (int)
        per frame: source frame, duration, build image index (int)
                   pivot x, pivot y, pivot w, pivot h, u1, v1, u2, v2 (float)
    name table: count, then (hash int, name string) pairs
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np
from PIL import Image

import config
from kanim.binary_writer import BinaryWriter
from kanim.errors import NamingConventionError
from kanim.hashing import NameHashTable
from kanim.symbol_table import SymbolTable
from packing.manifest import read_manifest
from spriter.scene_graph import SceneGraph

BILD_MAGIC = "BILD"


@dataclass
class BildFrame:
    source_frame_index: int
    duration: int
    build_image_index: int
    pivot_x: float
    pivot_y: float
    pivot_width: float
    pivot_height: float
    u1: float
    v1: float
    u2: float
    v2: float


@dataclass
class BildSymbol:
    hash: int
    path_hash: int
    color: int = 0
    flags: int = 0
    frame_count: int = 0
    frames: List[BildFrame] = field(default_factory=list)


@dataclass
class BildAsset:
    version: int
    symbol_count: int
    frame_count: int
    entity_name: str
    symbols: List[BildSymbol] = field(default_factory=list)


def frame_index_of(path: Path) -> int:
    """Trailing _<n> of a sprite file stem."""
    base, sep, suffix = path.stem.rpartition("_")
    if not sep:
        raise ValueError(f"no '_' in {path.name}")
    return int(suffix)


def scan_source_directory(
    input_dir: Union[str, Path],
    ignored_file: Optional[Union[str, Path]] = None
) -> Tuple[int, int]:
    """
    Count symbols and frames from the sprite files on disk.

    Every .png is a frame; a frame whose suffix is 0 starts a symbol.

    Args:
        input_dir: Directory holding <symbol>_<n>.png sprite files
        ignored_file: The packer's own output image, skipped if present

    Returns:
        (symbols, frames)

    Raises:
        NamingConventionError: If a .png name does not end in _<number>.
    """
    input_dir = Path(input_dir)
    ignored = Path(ignored_file).resolve() if ignored_file else None
    symbols = 0
    frames = 0
    if not input_dir.is_dir():
        return symbols, frames

    for child in sorted(input_dir.iterdir()):
        if child.suffix != ".png" or not child.is_file():
            continue
        if ignored is not None and child.resolve() == ignored:
            config.debug_print(f"BILD> Found file named {child.name}, ignoring.")
            continue
        try:
            index = frame_index_of(child)
        except ValueError:
            raise NamingConventionError(
                f"Improperly formatted texture name {child.name}. "
                f"Filenames should end in _[number], e.g. body_0.png."
            ) from None
        frames += 1
        if index == 0:
            symbols += 1
    return symbols, frames


def make_frame(entry, pivot: Tuple[float, float], image_size: Tuple[int, int]) -> BildFrame:
    """
    Frame record for one atlas entry.

    UVs are the entry rectangle normalized by the atlas size. The pivot box is
    twice the sprite size; the normalized top-left pivot is moved to the
    engine's centered, y-up convention.
    """
    img_w = np.float32(image_size[0])
    img_h = np.float32(image_size[1])
    x, y, w, h = (np.float32(v) for v in (entry.x, entry.y, entry.w, entry.h))

    pivot_width = np.float32(entry.w * 2)
    pivot_height = np.float32(entry.h * 2)
    half = np.float32(0.5)
    pivot_x = -(np.float32(pivot[0]) - half) * pivot_width
    pivot_y = (np.float32(pivot[1]) - half) * pivot_height

    return BildFrame(
        source_frame_index=entry.index,
        duration=1,
        build_image_index=0,
        pivot_x=float(pivot_x),
        pivot_y=float(pivot_y),
        pivot_width=float(pivot_width),
        pivot_height=float(pivot_height),
        u1=float(x / img_w),
        v1=float(y / img_h),
        u2=float((x + w) / img_w),
        v2=float((y + h) / img_h),
    )


def build_bild(
    scene: SceneGraph,
    table: SymbolTable,
    image_size: Tuple[int, int],
    symbol_count: int,
    frame_count: int
) -> BildAsset:
    """
    Assemble the build structure in atlas order.

    A new symbol opens every time the entry name differs from the previous
    entry's, so a name that reappears after another one forms a second symbol.
    """
    asset = BildAsset(
        version=config.BILD_VERSION,
        symbol_count=symbol_count,
        frame_count=frame_count,
        entity_name=scene.entity_name(),
    )

    current: Optional[BildSymbol] = None
    last_name: Optional[str] = None
    for entry in table.entries:
        if current is None or entry.name != last_name:
            symbol_hash = table.symbol_hash(entry.name)
            current = BildSymbol(
                hash=symbol_hash,
                path_hash=symbol_hash,
                frame_count=table.frame_count(entry.name),
            )
            asset.symbols.append(current)
            last_name = entry.name
        current.frames.append(make_frame(entry, table.sprite_pivot(scene, entry), image_size))

    return asset


def encode_bild(asset: BildAsset, hash_table: NameHashTable) -> bytes:
    """Serialize a build structure followed by the name table."""
    writer = BinaryWriter()
    writer.write_magic(BILD_MAGIC)
    writer.write_int(asset.version)
    writer.write_int(asset.symbol_count)
    writer.write_int(asset.frame_count)
    writer.write_string(asset.entity_name)
    config.debug_print(
        f"version={asset.version} symbols={asset.symbol_count} frames={asset.frame_count} name={asset.entity_name}"
    )

    for i, symbol in enumerate(asset.symbols):
        config.debug_print(
            f"symbol {i}=({symbol.hash},{symbol.path_hash},{symbol.color},{symbol.flags},{symbol.frame_count})"
        )
        writer.write_int(symbol.hash)
        writer.write_int(symbol.path_hash)
        writer.write_int(symbol.color)
        writer.write_int(symbol.flags)
        writer.write_int(symbol.frame_count)
        for frame in symbol.frames:
            writer.write_int(frame.source_frame_index)
            writer.write_int(frame.duration)
            writer.write_int(frame.build_image_index)
            writer.write_float(frame.pivot_x)
            writer.write_float(frame.pivot_y)
            writer.write_float(frame.pivot_width)
            writer.write_float(frame.pivot_height)
            writer.write_float(frame.u1)
            writer.write_float(frame.v1)
            writer.write_float(frame.u2)
            writer.write_float(frame.v2)

    writer.write_name_table(hash_table)
    return writer.getvalue()


def read_image_size(image_path: Union[str, Path]) -> Tuple[int, int]:
    with Image.open(image_path) as img:
        return img.size


def pack_bild(
    scene: SceneGraph,
    input_dir: Union[str, Path],
    atlas_path: Union[str, Path],
    image_path: Union[str, Path],
    output_path: Union[str, Path],
    hash_table: NameHashTable
) -> BildAsset:
    """
    Build and write <entity>_build.bytes from a packed atlas.

    Args:
        scene: Parsed Spriter project
        input_dir: Sprite directory the atlas was packed from
        atlas_path: Manifest written by the packer
        image_path: Packed atlas image written by the packer
        output_path: Destination .bytes file
        hash_table: Name table shared with the anim pass

    Returns:
        The build structure that was written.
    """
    symbol_count, frame_count = scan_source_directory(input_dir, image_path)
    table = SymbolTable.build(read_manifest(atlas_path), hash_table)
    asset = build_bild(scene, table, read_image_size(image_path), symbol_count, frame_count)

    with open(output_path, "wb") as f:
        f.write(encode_bild(asset, hash_table))
    return asset
