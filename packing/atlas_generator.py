"""
Texture Atlas Generator

Packs a directory of sprite frames into a single texture atlas and writes the
libGDX-style .atlas manifest the converter reads back. Frame files follow the
<name>_<index>.png convention; the suffix becomes the region index.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from PIL import Image

import config
from kanim.errors import ConversionError


@dataclass
class AtlasRegion:
    """Represents a region in a texture atlas."""
    name: str
    index: int
    x: int
    y: int
    width: int
    height: int
    orig_width: int
    orig_height: int
    offset_x: int = 0
    offset_y: int = 0
    rotate: bool = False
    stem: str = ""


@dataclass
class PackerSettings:
    """Settings for one packing attempt."""
    max_width: int = 4096
    max_height: int = 4096
    padding: int = 2
    square: bool = True

    @classmethod
    def from_config(cls) -> "PackerSettings":
        return cls(
            max_width=config.ATLAS_MAX_SIZE,
            max_height=config.ATLAS_MAX_SIZE,
            padding=config.ATLAS_PADDING,
            square=config.ATLAS_SQUARE,
        )


class AtlasPackingError(ConversionError):
    """Raised when the sprites cannot be packed into a single page."""


def split_region_name(stem: str) -> Tuple[str, int]:
    """
    Split a file stem into (region name, index).

    "head_3" -> ("head", 3); stems without a numeric suffix keep index -1.
    """
    base, sep, suffix = stem.rpartition("_")
    if sep and base and suffix.isdigit():
        return base, int(suffix)
    return stem, -1


class AtlasGenerator:
    """
    Generates a texture atlas from sprite frame images.
    Uses a simple shelf bin-packing algorithm to arrange images.
    """

    def __init__(self, settings: Optional[PackerSettings] = None):
        self.settings = settings or PackerSettings()
        self.regions: List[AtlasRegion] = []
        self.atlas_size: Tuple[int, int] = (0, 0)

    def pack_images(
        self,
        image_paths: Dict[str, Path],
        output_atlas_path: Path,
        output_image_path: Path
    ) -> bool:
        """
        Pack multiple images into a single atlas.

        Args:
            image_paths: Dict mapping file stems to image file paths
            output_atlas_path: Path to save .atlas file
            output_image_path: Path to save packed image

        Returns:
            True if packing was successful
        """
        config.debug_print(f"pack_images: Received {len(image_paths)} image paths")
        if not image_paths:
            return False

        self.regions = []

        images: Dict[str, Image.Image] = {}
        for stem, path in image_paths.items():
            with Image.open(path) as img:
                images[stem] = img.convert("RGBA")

        # Sort by area (largest first) for better packing
        sorted_stems = sorted(
            images.keys(),
            key=lambda n: (-(images[n].width * images[n].height), n)
        )

        if not self._pack_shelf(images, sorted_stems):
            config.debug_print(
                f"pack_images: Shelf packing failed for {self.settings.max_width}x{self.settings.max_height}"
            )
            return False

        used_width = max(r.x + r.width for r in self.regions) + self.settings.padding
        used_height = max(r.y + r.height for r in self.regions) + self.settings.padding
        atlas_width = self._next_power_of_2(used_width)
        atlas_height = self._next_power_of_2(used_height)
        if self.settings.square:
            atlas_width = atlas_height = max(atlas_width, atlas_height)
        if atlas_width > self.settings.max_width or atlas_height > self.settings.max_height:
            return False
        self.atlas_size = (atlas_width, atlas_height)

        atlas_image = Image.new("RGBA", (atlas_width, atlas_height), (0, 0, 0, 0))
        for region in self.regions:
            atlas_image.paste(images[region.stem], (region.x, region.y))

        output_image_path.parent.mkdir(parents=True, exist_ok=True)
        atlas_image.save(output_image_path, "PNG")
        config.debug_print(f"pack_images: Atlas image saved to {output_image_path}")

        self._write_atlas_file(output_atlas_path, output_image_path.name, atlas_width, atlas_height)
        config.debug_print(f"pack_images: Atlas file saved to {output_atlas_path}")

        return True

    def _pack_shelf(self, images: Dict[str, Image.Image], stems: List[str]) -> bool:
        """
        Shelf packing algorithm: place images on horizontal shelves.
        """
        padding = self.settings.padding
        shelf_y = padding
        shelf_height = 0
        shelf_x = padding

        for stem in stems:
            width, height = images[stem].size

            # Move to next shelf
            if shelf_x + width + padding > self.settings.max_width:
                shelf_y += shelf_height + padding
                shelf_x = padding
                shelf_height = 0

            if shelf_y + height + padding > self.settings.max_height:
                return False

            name, index = split_region_name(stem)
            self.regions.append(AtlasRegion(
                name=name,
                index=index,
                x=shelf_x,
                y=shelf_y,
                width=width,
                height=height,
                orig_width=width,
                orig_height=height,
                stem=stem
            ))

            shelf_x += width + padding
            shelf_height = max(shelf_height, height)

        return True

    def _next_power_of_2(self, n: int) -> int:
        """Round up to next power of 2."""
        n = max(1, n)
        return 2 ** math.ceil(math.log2(n))

    def _write_atlas_file(
        self,
        output_path: Path,
        image_filename: str,
        atlas_width: int,
        atlas_height: int
    ):
        """
        Write the .atlas manifest, regions ordered by (name, index).
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            # Page preamble: 6 lines including the leading blank one
            f.write(f"\n{image_filename}\n")
            f.write(f"size: {atlas_width},{atlas_height}\n")
            f.write("format: RGBA8888\n")
            f.write("filter: Nearest,Nearest\n")
            f.write("repeat: none\n")

            for region in sorted(self.regions, key=lambda r: (r.name, r.index)):
                f.write(f"{region.name}\n")
                f.write(f"  rotate: {'true' if region.rotate else 'false'}\n")
                f.write(f"  xy: {region.x}, {region.y}\n")
                f.write(f"  size: {region.width}, {region.height}\n")
                f.write(f"  orig: {region.orig_width}, {region.orig_height}\n")
                f.write(f"  offset: {region.offset_x}, {region.offset_y}\n")
                f.write(f"  index: {region.index}\n")


def pack_directory(
    input_dir: Union[str, Path],
    output_dir: Union[str, Path],
    name: str,
    settings: Optional[PackerSettings] = None
) -> Tuple[Path, Path]:
    """
    Pack every PNG in a sprite directory into <name>.png + <name>.atlas.

    Args:
        input_dir: Directory holding <symbol>_<n>.png frames
        output_dir: Directory to save atlas files
        name: Base name for atlas files

    Returns:
        Tuple of (atlas_file_path, image_file_path)

    Raises:
        AtlasPackingError: If no images were found or none of the packing
                           configurations could fit them.
    """
    input_dir = Path(input_dir)
    output_dir = Path(output_dir)
    atlas_path = output_dir / f"{name}.atlas"
    image_path = output_dir / f"{name}.png"

    image_paths: Dict[str, Path] = {}
    for img_file in sorted(input_dir.glob("*.png")):
        if not img_file.is_file() or img_file.resolve() == image_path.resolve():
            continue
        image_paths[img_file.stem] = img_file

    if not image_paths:
        raise AtlasPackingError(f"No PNG sprites found in {input_dir}")

    base = settings or PackerSettings.from_config()
    packing_configs = [
        base,
        PackerSettings(base.max_width, base.max_height, 0, base.square),
        PackerSettings(base.max_width * 2, base.max_height * 2, base.padding, base.square),
    ]

    output_dir.mkdir(parents=True, exist_ok=True)
    for attempt in packing_configs:
        config.debug_print(f"Attempting atlas pack with {attempt}")
        generator = AtlasGenerator(attempt)
        if generator.pack_images(image_paths, atlas_path, image_path):
            return atlas_path, image_path

    raise AtlasPackingError(f"Could not pack {len(image_paths)} sprites from {input_dir} into one atlas page")
