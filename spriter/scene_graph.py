"""
Spriter Scene Graph

Read-only, typed view over the subset of a Spriter .scml document the
converter needs: the entity name, the sprite files of the folder, and per
animation the mainline keys plus the timeline keys they reference.

Every query checks the structural contract it relies on and raises
StructuralFormatError when the document breaks it.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from config import debug_print
from kanim.errors import StructuralFormatError

TRANSFORM_ATTRIBUTES = ("x", "y", "angle", "scale_x", "scale_y")


@dataclass(frozen=True)
class SpriteFile:
    """A <file> of the folder: one source sprite image."""
    id: int
    name: str
    pivot_x: float
    pivot_y: float
    width: int
    height: int


@dataclass(frozen=True)
class ObjectRef:
    """An <object_ref> of a mainline key."""
    z_index: int
    timeline: int
    key: int


@dataclass
class MainlineKey:
    """
    A <key> of the mainline: one output frame.

    `child_nodes` counts the key's DOM child nodes, whitespace text included.
    """
    id: str
    object_refs: List[ObjectRef] = field(default_factory=list)
    child_nodes: int = 0


@dataclass(frozen=True)
class ObjectData:
    """
    The <object> of a timeline key.

    `file` stays a raw string because a non-numeric file reference is a
    tolerated, element-level problem. Transform attributes hold only what the
    key specifies; omitted ones are None and inherit from earlier keys.
    """
    file: str
    x: Optional[str] = None
    y: Optional[str] = None
    angle: Optional[str] = None
    scale_x: Optional[str] = None
    scale_y: Optional[str] = None


@dataclass
class Timeline:
    """
    A <timeline> with its sparse keys indexed by key id.

    Only keys that a first-match scan of the timeline can reach are kept: the
    scan stops at a child that is not a <key> or whose id is not an integer,
    and a repeated id keeps its first key. A key without an <object> maps to
    None and is only an error once a mainline key references it.
    """
    id: int
    animation: str = ""
    keys: Dict[int, Optional[ObjectData]] = field(default_factory=dict)


@dataclass
class Animation:
    """An <animation> of the entity."""
    name: str
    interval: Optional[str]
    mainline: List[MainlineKey]
    timelines: Dict[int, Timeline]


def _children(element: ET.Element) -> List[ET.Element]:
    return list(element)


def _dom_child_count(element: ET.Element) -> int:
    """Child nodes a DOM parser would report: elements plus the text runs around them."""
    count = len(element)
    if element.text is not None:
        count += 1
    count += sum(1 for child in element if child.tail is not None)
    return count


def _int_attr(element: ET.Element, name: str, context: str) -> int:
    value = element.get(name)
    if value is None:
        raise StructuralFormatError(f"SCML format exception - {context} is missing attribute '{name}'")
    try:
        return int(value)
    except ValueError:
        raise StructuralFormatError(
            f"SCML format exception - {context} has non-integer {name}='{value}'"
        ) from None


def _float_attr(element: ET.Element, name: str, context: str) -> float:
    value = element.get(name)
    if value is None:
        raise StructuralFormatError(f"SCML format exception - {context} is missing attribute '{name}'")
    try:
        return float(value)
    except ValueError:
        raise StructuralFormatError(
            f"SCML format exception - {context} has non-numeric {name}='{value}'"
        ) from None


class SceneGraph:
    """
    Queries over a parsed .scml document.

    Args:
        root: Root element of the parsed document.
    """

    def __init__(self, root: ET.Element):
        self.root = root
        self._file_map: Optional[Dict[int, SpriteFile]] = None

    @classmethod
    def load(cls, path: Union[str, Path]) -> "SceneGraph":
        """Parse an .scml file from disk."""
        try:
            tree = ET.parse(str(path))
        except ET.ParseError as e:
            raise StructuralFormatError(f"Could not parse SCML file {path}: {e}") from e
        return cls(tree.getroot())

    @classmethod
    def from_string(cls, text: str) -> "SceneGraph":
        try:
            return cls(ET.fromstring(text))
        except ET.ParseError as e:
            raise StructuralFormatError(f"Could not parse SCML document: {e}") from e

    def _first(self, tag: str) -> ET.Element:
        element = self.root if self.root.tag == tag else self.root.find(f".//{tag}")
        if element is None:
            raise StructuralFormatError(f"SCML format exception - no <{tag}> tag found")
        return element

    # -- entity -----------------------------------------------------------

    def entity_name(self) -> str:
        """Name attribute of the first <entity>."""
        return self._first("entity").get("name", "")

    def animation_elements(self) -> List[ET.Element]:
        """All children of the entity; every one must be an <animation>."""
        animations = _children(self._first("entity"))
        for child in animations:
            if child.tag != "animation":
                raise StructuralFormatError(
                    f"SCML format exception - all children of entity must be animation tags (found <{child.tag}>)"
                )
        return animations

    def animations(self) -> List[Animation]:
        """Typed records for every animation, in document order."""
        return [self._animation(element) for element in self.animation_elements()]

    def _animation(self, element: ET.Element) -> Animation:
        name = element.get("name", "")
        return Animation(
            name=name,
            interval=element.get("interval"),
            mainline=self.mainline_keys(element),
            timelines=self.timeline_map(element),
        )

    # -- mainline ---------------------------------------------------------

    def mainline(self, animation: ET.Element) -> ET.Element:
        """The <mainline> child of an animation."""
        for child in _children(animation):
            if child.tag == "mainline":
                return child
        raise StructuralFormatError(
            f"SCML format exception - no mainline tag child of animation '{animation.get('name', '')}'"
        )

    def mainline_keys(self, animation: ET.Element) -> List[MainlineKey]:
        """Mainline keys in document order; every child must be a <key>."""
        anim_name = animation.get("name", "")
        keys = []
        for key in _children(self.mainline(animation)):
            if key.tag != "key":
                raise StructuralFormatError(
                    f"SCML format exception - all children of mainline must be key tags (animation '{anim_name}')"
                )
            keys.append(MainlineKey(
                id=key.get("id", ""),
                object_refs=self.object_refs(key, anim_name),
                child_nodes=_dom_child_count(key),
            ))
        return keys

    def object_refs(self, key: ET.Element, anim_name: str = "") -> List[ObjectRef]:
        """Object references of a mainline key; every child must be an <object_ref>."""
        refs = []
        for child in _children(key):
            if child.tag != "object_ref":
                raise StructuralFormatError(
                    f"SCML format exception - all children of key must be object_ref tags "
                    f"(animation '{anim_name}', key {key.get('id', '?')})"
                )
            context = f"object_ref in animation '{anim_name}' key {key.get('id', '?')}"
            refs.append(ObjectRef(
                z_index=_int_attr(child, "z_index", context),
                timeline=_int_attr(child, "timeline", context),
                key=_int_attr(child, "key", context),
            ))
        return refs

    # -- timelines --------------------------------------------------------

    def timeline_map(self, animation: ET.Element) -> Dict[int, Timeline]:
        """id -> Timeline for every <timeline> child of an animation."""
        anim_name = animation.get("name", "")
        timelines: Dict[int, Timeline] = {}
        for child in _children(animation):
            if child.tag != "timeline":
                continue
            timeline_id = _int_attr(child, "id", f"timeline of animation '{anim_name}'")
            timeline = Timeline(id=timeline_id, animation=anim_name)
            for key in _children(child):
                if key.tag != "key":
                    debug_print(
                        f"timeline {timeline_id} of anim {anim_name}: <{key.tag}> child, later keys unreachable"
                    )
                    break
                try:
                    key_id = int(key.get("id", ""))
                except ValueError:
                    debug_print(
                        f"timeline {timeline_id} of anim {anim_name}: key id '{key.get('id')}' is not an integer, "
                        f"later keys unreachable"
                    )
                    break
                timeline.keys.setdefault(key_id, self._object_data(key))
            timelines[timeline_id] = timeline
        return timelines

    def _object_data(self, key: ET.Element) -> Optional[ObjectData]:
        obj = key.find(".//object")
        if obj is None:
            return None
        return ObjectData(
            file=obj.get("file", ""),
            **{name: obj.get(name) for name in TRANSFORM_ATTRIBUTES},
        )

    @staticmethod
    def frame_data(timeline: Optional[Timeline], frame: int) -> Optional[ObjectData]:
        """
        Resolve a timeline key to its object data.

        Returns None when the timeline or the key does not exist; callers drop
        the element for that frame.

        Raises:
            StructuralFormatError: If the key exists but holds no <object>.
        """
        if timeline is None or frame not in timeline.keys:
            return None
        data = timeline.keys[frame]
        if data is None:
            raise StructuralFormatError(
                f"SCML format exception - no <object> in key {frame} of timeline {timeline.id} "
                f"(of anim {timeline.animation})"
            )
        return data

    # -- folder -----------------------------------------------------------

    def folder_elements(self) -> List[ET.Element]:
        """Element children of the first <folder>, whatever their tag."""
        return _children(self._first("folder"))

    def file_map(self) -> Dict[int, SpriteFile]:
        """id -> SpriteFile for every <file> child of the folder."""
        if self._file_map is None:
            files: Dict[int, SpriteFile] = {}
            for element in self.folder_elements():
                if element.tag != "file":
                    raise StructuralFormatError(
                        f"SCML format exception - all children of folder must be file tags (found <{element.tag}>)"
                    )
                sprite = self._sprite_file(element)
                files[sprite.id] = sprite
            self._file_map = files
        return self._file_map

    def _sprite_file(self, element: ET.Element) -> SpriteFile:
        context = f"file '{element.get('name', '?')}'"
        return SpriteFile(
            id=_int_attr(element, "id", context),
            name=element.get("name", ""),
            pivot_x=_float_attr(element, "pivot_x", context),
            pivot_y=_float_attr(element, "pivot_y", context),
            width=_int_attr(element, "width", context),
            height=_int_attr(element, "height", context),
        )

    def sprite_by_name(self, name: str) -> Optional[ET.Element]:
        """
        The folder child named `name` or `name.png`.

        When several children match, the last one wins.
        """
        match = None
        for element in self.folder_elements():
            if element.get("name") in (name, f"{name}.png"):
                match = element
        return match

    def sprite_pivot(self, name: str) -> Optional[Tuple[float, float]]:
        """Normalized (pivot_x, pivot_y) of the sprite named `name`, or None."""
        element = self.sprite_by_name(name)
        if element is None:
            return None
        context = f"file '{element.get('name')}'"
        return _float_attr(element, "pivot_x", context), _float_attr(element, "pivot_y", context)

    def max_visible_symbol_frames(self) -> int:
        """
        Largest child node count of any mainline key holding an <object_ref>.

        Whitespace text between the references counts, so a pretty-printed key
        with one reference reports 3.
        """
        most = 0
        for animation in self.animation_elements():
            for key in self.mainline_keys(animation):
                if key.object_refs:
                    most = max(most, key.child_nodes)
        return most
