# services/converter.py
"""
SCML -> kanim conversion pipeline.

parse -> pack atlas -> build/write BILD -> build/write ANIM, single-threaded.
A fatal error aborts the run; a file written before the failure stays on disk.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

import config
from kanim.anim import AnimAsset, pack_anim
from kanim.bild import BildAsset, pack_bild
from kanim.hashing import NameHashTable
from packing.atlas_generator import pack_directory
from spriter.scene_graph import SceneGraph

# (input_dir, output_dir, name) -> (atlas_path, image_path)
Packer = Callable[[Path, Path, str], Tuple[Path, Path]]


@dataclass
class ConversionResult:
    entity_name: str
    build_path: Path
    anim_path: Path
    atlas_path: Path
    image_path: Path
    bild: BildAsset
    anim: AnimAsset


def get_output_path(output_dir: Optional[Union[str, Path]] = None) -> Path:
    """Absolute output directory, falling back to KANIM_OUTPUT_DIR."""
    return Path(output_dir or config.OUTPUT_DIR).resolve()


def convert(
    scml_path: Union[str, Path],
    output_dir: Optional[Union[str, Path]] = None,
    packer: Packer = pack_directory
) -> ConversionResult:
    """
    Convert a Spriter project into <entity>_build.bytes and <entity>_anim.bytes.

    Args:
        scml_path: Path to the .scml file; sprite images sit next to it
        output_dir: Destination directory (default: KANIM_OUTPUT_DIR), created if absent
        packer: Texture packer writing <name>.atlas and <name>.png

    Returns:
        ConversionResult with the written paths and encoded structures

    Raises:
        ConversionError: On any structural, naming or reference violation.
    """
    scml_path = Path(scml_path)
    scene = SceneGraph.load(scml_path)
    input_path = scml_path.resolve().parent
    output_path = get_output_path(output_dir)

    if not output_path.exists():
        print("Creating output directories.")
        output_path.mkdir(parents=True, exist_ok=True)

    name = scene.entity_name()
    hash_table = NameHashTable()

    print("Packing texture...")
    atlas_path, image_path = packer(input_path, output_path, name)
    build_path = output_path / f"{name}_build.bytes"
    bild = pack_bild(scene, input_path, atlas_path, image_path, build_path, hash_table)

    print("Packing animation...")
    anim_path = output_path / f"{name}_anim.bytes"
    anim = pack_anim(scene, atlas_path, anim_path, hash_table)

    print("Done.")
    return ConversionResult(
        entity_name=name,
        build_path=build_path,
        anim_path=anim_path,
        atlas_path=Path(atlas_path),
        image_path=Path(image_path),
        bild=bild,
        anim=anim,
    )
