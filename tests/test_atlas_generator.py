import pytest
from helpers import make_png
from PIL import Image

from packing.atlas_generator import AtlasPackingError, PackerSettings, pack_directory, split_region_name
from packing.manifest import read_manifest


@pytest.mark.parametrize("stem, expected", [
    ("head_3", ("head", 3)),
    ("left_arm_0", ("left_arm", 0)),
    ("shadow", ("shadow", -1)),
    ("tail_x", ("tail_x", -1)),
])
def test_split_region_name(stem, expected):
    assert split_region_name(stem) == expected


def test_manifest_round_trips_through_the_parser(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    make_png(src / "b_0.png", (6, 4))
    make_png(src / "a_1.png", (4, 4))
    make_png(src / "a_0.png", (8, 8))

    atlas_path, image_path = pack_directory(src, tmp_path / "out", "hero", PackerSettings(padding=2))
    entries = read_manifest(atlas_path)

    assert [(e.name, e.index) for e in entries] == [("a", 0), ("a", 1), ("b", 0)]
    assert [(e.w, e.h) for e in entries] == [(8, 8), (4, 4), (6, 4)]
    with Image.open(image_path) as img:
        width, height = img.size
    assert width == height
    for e in entries:
        assert e.x + e.w <= width and e.y + e.h <= height


def test_packed_pixels_land_at_their_regions(tmp_path):
    make_png(tmp_path / "dot_0.png", (2, 2), color=(0, 255, 0, 255))

    atlas_path, image_path = pack_directory(tmp_path, tmp_path / "out", "dot", PackerSettings(padding=1))
    placed = read_manifest(atlas_path)[0]

    with Image.open(image_path) as img:
        assert img.getpixel((placed.x, placed.y)) == (0, 255, 0, 255)
        assert img.getpixel((0, 0)) == (0, 0, 0, 0)


def test_own_output_image_is_not_repacked(tmp_path):
    make_png(tmp_path / "a_0.png", (4, 4))
    pack_directory(tmp_path, tmp_path, "hero", PackerSettings())
    atlas_path, _ = pack_directory(tmp_path, tmp_path, "hero", PackerSettings())

    assert [e.name for e in read_manifest(atlas_path)] == ["a"]


def test_empty_directory_raises(tmp_path):
    with pytest.raises(AtlasPackingError, match="No PNG sprites"):
        pack_directory(tmp_path, tmp_path / "out", "hero")


def test_oversized_sprites_raise(tmp_path):
    make_png(tmp_path / "big_0.png", (40, 40))
    with pytest.raises(AtlasPackingError, match="Could not pack"):
        pack_directory(tmp_path, tmp_path / "out", "hero", PackerSettings(max_width=8, max_height=8))
