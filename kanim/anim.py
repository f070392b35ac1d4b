"""
ANIM encoder

Turns every Spriter animation into a bank and every mainline key into a frame
of transformed sprite elements with an aggregate bounding box.

Spriter keys are sparse: a timeline key only lists the attributes that changed,
so each timeline carries its last resolved transform forward within an
animation.

Layout:
    'ANIM'
    version, elements (0), frames (0), animation count (int)
    per bank: name (string), hash (int), frame rate (float), frame count (int)
        per frame: center x, center y, width, height (float), element count (int)
            per element: image hash, frame index, layer hash, flags (int)
                         a, b, g, r, m1..m6, order (float)
    max visible symbol frames (int)
    name table: count, then (hash int, name string) pairs
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np

import config
from kanim.binary_writer import BinaryWriter
from kanim.errors import NamingConventionError, UnresolvedReferenceError
from kanim.hashing import NameHashTable
from kanim.symbol_table import SymbolTable
from packing.manifest import read_manifest
from spriter.scene_graph import Animation, ObjectData, ObjectRef, SceneGraph, SpriteFile

ANIM_MAGIC = "ANIM"

FLT_MAX = np.finfo(np.float32).max


@dataclass
class AnimElement:
    image_hash: int
    frame_index: int
    layer_hash: int
    flags: int = 0
    color: Tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    m1: float = 1.0
    m2: float = 0.0
    m3: float = 0.0
    m4: float = 1.0
    m5: float = 0.0
    m6: float = 0.0
    order: float = 0.0
    z_index: int = 0


@dataclass
class AnimFrame:
    center_x: float
    center_y: float
    width: float
    height: float
    elements: List[AnimElement] = field(default_factory=list)

    @property
    def element_count(self) -> int:
        return len(self.elements)


@dataclass
class AnimBank:
    name: str
    hash: int
    frame_rate: float
    frames: List[AnimFrame] = field(default_factory=list)

    @property
    def frame_count(self) -> int:
        return len(self.frames)


@dataclass
class AnimAsset:
    version: int
    elements_reserved: int = 0
    frames_reserved: int = 0
    banks: List[AnimBank] = field(default_factory=list)
    max_visible_symbol_frames: int = 0

    @property
    def animation_count(self) -> int:
        return len(self.banks)


@dataclass
class TimelineState:
    """Last resolved transform of one timeline."""
    x: np.float32 = np.float32(0.0)
    y: np.float32 = np.float32(0.0)
    angle: np.float32 = np.float32(0.0)
    scale_x: np.float32 = np.float32(1.0)
    scale_y: np.float32 = np.float32(1.0)

    def resolve(self, data: ObjectData) -> "TimelineState":
        """
        Effective transform of a key: its own attributes where present,
        otherwise this state's values.

        Raises:
            ValueError: If a present attribute is not a number.
        """
        def pick(raw: Optional[str], fallback: np.float32) -> np.float32:
            return fallback if raw is None else np.float32(float(raw))

        return TimelineState(
            x=pick(data.x, self.x),
            y=pick(data.y, self.y),
            angle=pick(data.angle, self.angle),
            scale_x=pick(data.scale_x, self.scale_x),
            scale_y=pick(data.scale_y, self.scale_y),
        )


class BoundsAccumulator:
    """Running min/max of transformed element corners for one frame."""

    def __init__(self):
        self.min_x = np.float32(FLT_MAX)
        self.min_y = np.float32(FLT_MAX)
        self.max_x = np.float32(-FLT_MAX)
        self.max_y = np.float32(-FLT_MAX)

    def add(self, xs: np.ndarray, ys: np.ndarray):
        self.min_x = min(self.min_x, xs.min())
        self.min_y = min(self.min_y, ys.min())
        self.max_x = max(self.max_x, xs.max())
        self.max_y = max(self.max_y, ys.max())

    def result(self) -> Tuple[float, float, float, float]:
        """(center x, center y, width, height). An empty frame keeps the extremes."""
        half = np.float32(0.5)
        with np.errstate(over="ignore"):
            center_x = half * (self.min_x + self.max_x)
            center_y = half * (self.min_y + self.max_y)
            width = self.max_x - self.min_x
            height = self.max_y - self.min_y
        return float(center_x), float(center_y), float(width), float(height)


def frame_rate(interval: Optional[str]) -> float:
    """Frames per second from a Spriter interval in ms (33 ms when unusable)."""
    try:
        interval_ms = int(interval) if interval is not None else config.DEFAULT_FRAME_INTERVAL_MS
    except ValueError:
        interval_ms = config.DEFAULT_FRAME_INTERVAL_MS
    if interval_ms <= 0:
        interval_ms = config.DEFAULT_FRAME_INTERVAL_MS
    return float(np.float32(config.MS_PER_S) / np.float32(interval_ms))


def rotate_about(
    center: Tuple[np.float32, np.float32],
    angle: np.float32,
    xs: np.ndarray,
    ys: np.ndarray,
    scale: Tuple[np.float32, np.float32]
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Transform points about a center: translate to origin, rotate, scale,
    translate back.
    """
    sin = np.float32(math.sin(angle))
    cos = np.float32(math.cos(angle))
    px = xs - center[0]
    py = ys - center[1]
    rx = px * cos - py * sin
    ry = px * sin + py * cos
    return rx * scale[0] + center[0], ry * scale[1] + center[1]


def sprite_corners(sprite: SpriteFile, state: TimelineState) -> Tuple[np.ndarray, np.ndarray]:
    """
    Corners of the sprite transformed by a resolved state.

    The rectangle extends by the sprite width along both axes.
    """
    width = np.float32(sprite.width)
    height = np.float32(sprite.height)
    center = (
        np.float32(sprite.pivot_x) * width + state.x,
        np.float32(sprite.pivot_y) * height + state.y,
    )
    x1, y1 = state.x, state.y
    x2 = x1 + width
    y2 = y1 + width
    xs = np.array([x1, x2, x2, x1], dtype=np.float32)
    ys = np.array([y1, y1, y2, y2], dtype=np.float32)
    angle = np.float32(math.radians(float(state.angle)))
    return rotate_about(center, angle, xs, ys, (state.scale_x, state.scale_y))


def split_image_name(file_name: str) -> Tuple[str, str]:
    """
    'head_2.png' -> ('head', '2').

    The suffix is left unparsed; a non-numeric one only drops the element.

    Raises:
        NamingConventionError: If the name has no '_' at all.
    """
    stem = file_name[:-4] if file_name.endswith(".png") else file_name
    base, sep, suffix = stem.rpartition("_")
    if not sep:
        raise NamingConventionError(
            f"Improperly formatted sprite name {file_name}. Names should end in _[number], e.g. body_0.png."
        )
    return base, suffix


class AnimEncoder:
    """
    Builds the anim structure for every animation of a scene.

    Args:
        scene: Parsed Spriter project
        hash_table: Name table already holding the atlas symbol names
    """

    def __init__(self, scene: SceneGraph, hash_table: NameHashTable):
        self.scene = scene
        self.hash_table = hash_table
        self.files = scene.file_map()
        self.dropped: Dict[str, int] = {}

    def build(self) -> AnimAsset:
        animations = self.scene.animations()
        for animation in animations:
            self.hash_table.add(animation.name)

        asset = AnimAsset(
            version=config.ANIM_VERSION,
            max_visible_symbol_frames=self.scene.max_visible_symbol_frames(),
        )
        for animation in animations:
            asset.banks.append(self.build_bank(animation))
        return asset

    def build_bank(self, animation: Animation) -> AnimBank:
        bank = AnimBank(
            name=animation.name,
            hash=self.hash_table.add(animation.name),
            frame_rate=frame_rate(animation.interval),
        )
        config.debug_print(f"bank.name={bank.name} hash={bank.hash} rate={bank.frame_rate}")

        states: Dict[int, TimelineState] = {}
        self.dropped[animation.name] = 0
        for frame_number, key in enumerate(animation.mainline):
            bank.frames.append(self.build_frame(animation, frame_number, key.object_refs, states))

        if self.dropped[animation.name]:
            print(
                f"Animation '{animation.name}': dropped {self.dropped[animation.name]} "
                f"element reference(s) without a matching timeline key"
            )
        return bank

    def build_frame(
        self,
        animation: Animation,
        frame_number: int,
        refs: List[ObjectRef],
        states: Dict[int, TimelineState]
    ) -> AnimFrame:
        bounds = BoundsAccumulator()
        elements: List[AnimElement] = []

        for ref in refs:
            element = self.build_element(animation, frame_number, ref, states, bounds)
            if element is not None:
                elements.append(element)

        elements.sort(key=lambda e: -e.z_index)
        center_x, center_y, width, height = bounds.result()
        return AnimFrame(center_x=center_x, center_y=center_y, width=width, height=height, elements=elements)

    def build_element(
        self,
        animation: Animation,
        frame_number: int,
        ref: ObjectRef,
        states: Dict[int, TimelineState],
        bounds: BoundsAccumulator
    ) -> Optional[AnimElement]:
        data = SceneGraph.frame_data(animation.timelines.get(ref.timeline), ref.key)
        if data is None:
            self.dropped[animation.name] += 1
            config.debug_print(
                f"frame {frame_number} of '{animation.name}': no key {ref.key} in timeline {ref.timeline}, skipping"
            )
            return None

        try:
            file_id = int(data.file)
        except ValueError:
            config.debug_print("found invalid file reference - skipping")
            return None

        sprite = self.files.get(file_id)
        if sprite is None:
            raise UnresolvedReferenceError(
                f"Animation '{animation.name}' frame {frame_number} references file {file_id}, "
                f"which is not in the folder"
            )
        symbol, suffix = split_image_name(sprite.name)
        symbol_hash = self.hash_table.get(symbol)
        if symbol_hash is None:
            raise UnresolvedReferenceError(
                f"Animation '{animation.name}' frame {frame_number} uses sprite '{symbol}', "
                f"which is not in the packed atlas"
            )
        try:
            index = int(suffix)
        except ValueError:
            config.debug_print(f"invalid frame index in sprite name {sprite.name} - skipping")
            return None

        try:
            state = states.get(ref.timeline, TimelineState()).resolve(data)
        except ValueError as e:
            config.debug_print(f"invalid transform in timeline {ref.timeline} key {ref.key} - skipping ({e})")
            return None
        states[ref.timeline] = state

        angle = math.radians(float(state.angle))
        sin = math.sin(angle)
        cos = math.cos(angle)
        scale_x = float(state.scale_x)
        scale_y = float(state.scale_y)

        xs, ys = sprite_corners(sprite, state)
        bounds.add(xs, ys)

        return AnimElement(
            image_hash=symbol_hash,
            frame_index=index,
            layer_hash=symbol_hash,
            m1=float(np.float32(scale_x * cos)),
            m2=float(np.float32(scale_x * -sin)),
            m3=float(np.float32(scale_y * sin)),
            m4=float(np.float32(scale_y * cos)),
            m5=float(state.x * np.float32(2)),
            m6=float(-state.y * np.float32(2)),
            z_index=ref.z_index,
        )


def encode_anim(asset: AnimAsset, hash_table: NameHashTable) -> bytes:
    """Serialize an anim structure followed by the name table."""
    writer = BinaryWriter()
    writer.write_magic(ANIM_MAGIC)
    writer.write_int(asset.version)
    writer.write_int(asset.elements_reserved)
    writer.write_int(asset.frames_reserved)
    writer.write_int(asset.animation_count)

    for bank in asset.banks:
        writer.write_string(bank.name)
        writer.write_int(bank.hash)
        writer.write_float(bank.frame_rate)
        writer.write_int(bank.frame_count)
        for frame in bank.frames:
            writer.write_float(frame.center_x)
            writer.write_float(frame.center_y)
            writer.write_float(frame.width)
            writer.write_float(frame.height)
            writer.write_int(frame.element_count)
            for element in frame.elements:
                writer.write_int(element.image_hash)
                writer.write_int(element.frame_index)
                writer.write_int(element.layer_hash)
                writer.write_int(element.flags)
                for channel in element.color:
                    writer.write_float(channel)
                for value in (element.m1, element.m2, element.m3, element.m4, element.m5, element.m6):
                    writer.write_float(value)
                writer.write_float(element.order)

    writer.write_int(asset.max_visible_symbol_frames)
    writer.write_name_table(hash_table)
    return writer.getvalue()


def pack_anim(
    scene: SceneGraph,
    atlas_path: Union[str, Path],
    output_path: Union[str, Path],
    hash_table: NameHashTable
) -> AnimAsset:
    """
    Build and write <entity>_anim.bytes.

    Args:
        scene: Parsed Spriter project
        atlas_path: Manifest written by the packer during the build pass
        output_path: Destination .bytes file
        hash_table: Name table shared with the build pass

    Returns:
        The anim structure that was written.
    """
    SymbolTable.build(read_manifest(atlas_path), hash_table)
    asset = AnimEncoder(scene, hash_table).build()

    with open(output_path, "wb") as f:
        f.write(encode_anim(asset, hash_table))
    return asset
