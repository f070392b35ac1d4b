import pytest
from helpers import entry, file_xml, scml

from kanim.bild import build_bild, encode_bild
from kanim.errors import StructuralFormatError
from kanim.reader import read_bild, read_kanim_file
from kanim.symbol_table import SymbolTable
from spriter.scene_graph import SceneGraph


def encoded_build():
    table = SymbolTable.build([entry("a", 0), entry("a", 1)])
    scene = SceneGraph.from_string(scml("hero", [file_xml(0, "a_0.png", 4, 4), file_xml(1, "a_1.png", 4, 4)], []))
    return encode_bild(build_bild(scene, table, (16, 16), 1, 2), table.hash_table)


def test_build_symbols_are_read_with_their_header_frame_count():
    asset, names = read_bild(encoded_build())

    assert asset.entity_name == "hero"
    assert [len(s.frames) for s in asset.symbols] == [2]
    assert [f.source_frame_index for f in asset.symbols[0].frames] == [0, 1]
    assert [name for _, name in names] == ["a"]


def test_truncated_file_raises():
    with pytest.raises(StructuralFormatError, match="Unexpected end of file"):
        read_bild(encoded_build()[:-3])


def test_wrong_version_raises():
    data = bytearray(encoded_build())
    data[4] = 9
    with pytest.raises(StructuralFormatError, match="Unsupported BILD version 9"):
        read_bild(bytes(data))


def test_unknown_magic(tmp_path):
    path = tmp_path / "junk.bytes"
    path.write_bytes(b"JUNK\x00\x00\x00\x00")
    with pytest.raises(StructuralFormatError, match="neither a BILD nor an ANIM"):
        read_kanim_file(path)


def test_dispatch_on_magic(tmp_path):
    path = tmp_path / "hero_build.bytes"
    path.write_bytes(encoded_build())

    magic, asset, _ = read_kanim_file(path)
    assert magic == "BILD"
    assert asset.symbol_count == 1
