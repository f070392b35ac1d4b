"""Builders for small Spriter projects used across the test suite."""

from pathlib import Path
from typing import Dict, Iterable, Tuple

from PIL import Image

from packing.manifest import AtlasEntry

PREAMBLE = "\nhero.png\nsize: 64,64\nformat: RGBA8888\nfilter: Nearest,Nearest\nrepeat: none\n"


def make_png(path: Path, size: Tuple[int, int], color=(255, 0, 0, 255)) -> Path:
    Image.new("RGBA", size, color).save(path, "PNG")
    return path


def file_xml(file_id: int, name: str, width: int, height: int, pivot=(0.5, 0.5)) -> str:
    return (
        f'<file id="{file_id}" name="{name}" width="{width}" height="{height}" '
        f'pivot_x="{pivot[0]}" pivot_y="{pivot[1]}"/>'
    )


def object_ref_xml(timeline: int, key: int, z_index: int) -> str:
    return f'<object_ref id="{timeline}" timeline="{timeline}" key="{key}" z_index="{z_index}"/>'


def mainline_xml(keys: Iterable[Iterable[str]]) -> str:
    body = "".join(
        f'<key id="{i}">{"".join(refs)}</key>' for i, refs in enumerate(keys)
    )
    return f"<mainline>{body}</mainline>"


def timeline_xml(timeline_id: int, keys: Dict[int, Dict[str, str]]) -> str:
    body = ""
    for key_id, attrs in keys.items():
        rendered = " ".join(f'{name}="{value}"' for name, value in attrs.items())
        body += f'<key id="{key_id}"><object folder="0" {rendered}/></key>'
    return f'<timeline id="{timeline_id}">{body}</timeline>'


def animation_xml(name: str, body: str, interval="100") -> str:
    interval_attr = f' interval="{interval}"' if interval is not None else ""
    return f'<animation id="0" name="{name}" length="1000"{interval_attr}>{body}</animation>'


def scml(entity: str, files: Iterable[str], animations: Iterable[str]) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<spriter_data scml_version="1.0" generator="BrashMonkey Spriter">'
        f'<folder id="0">{"".join(files)}</folder>'
        f'<entity id="0" name="{entity}">{"".join(animations)}</entity>'
        "</spriter_data>"
    )


def manifest_record(name: str, index: int, xy=(0, 0), size=(4, 4), rotate="false") -> str:
    return (
        f"{name}\n"
        f"  rotate: {rotate}\n"
        f"  xy: {xy[0]}, {xy[1]}\n"
        f"  size: {size[0]}, {size[1]}\n"
        f"  orig: {size[0]}, {size[1]}\n"
        f"  offset: 0, 0\n"
        f"  index: {index}\n"
    )


def entry(name: str, index: int, x=0, y=0, w=4, h=4) -> AtlasEntry:
    return AtlasEntry(
        name=name, rotated=False, x=x, y=y, w=w, h=h,
        origin_x=w, origin_y=h, offset_x=0, offset_y=0, index=index,
    )


BALL_SCML = scml(
    "ball",
    [file_xml(0, "ball_0.png", 4, 4, pivot=(0.25, 0.75))],
    [animation_xml(
        "idle",
        mainline_xml([[object_ref_xml(0, 0, 0)]])
        + timeline_xml(0, {0: {"file": "0", "x": "10", "y": "5"}}),
    )],
)


def write_ball_project(root: Path) -> Path:
    """One symbol, one frame, one animation, one keyframe."""
    root.mkdir(parents=True, exist_ok=True)
    make_png(root / "ball_0.png", (4, 4))
    scml_path = root / "ball.scml"
    scml_path.write_text(BALL_SCML, encoding="utf-8")
    return scml_path
