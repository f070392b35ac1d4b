import pytest
from helpers import (BALL_SCML, animation_xml, file_xml, mainline_xml, object_ref_xml, scml,
                     timeline_xml)

from kanim.errors import StructuralFormatError
from spriter.scene_graph import ObjectData, ObjectRef, SceneGraph, SpriteFile


def test_entity_and_animation_names():
    scene = SceneGraph.from_string(BALL_SCML)
    assert scene.entity_name() == "ball"
    assert [animation.name for animation in scene.animations()] == ["idle"]


def test_typed_animation_view():
    animation = SceneGraph.from_string(BALL_SCML).animations()[0]

    assert animation.interval == "100"
    assert animation.mainline[0].object_refs == [ObjectRef(z_index=0, timeline=0, key=0)]
    data = animation.timelines[0].keys[0]
    assert data == ObjectData(file="0", x="10", y="5")
    assert data.angle is None


def test_file_map():
    files = SceneGraph.from_string(BALL_SCML).file_map()
    assert files == {0: SpriteFile(id=0, name="ball_0.png", pivot_x=0.25, pivot_y=0.75, width=4, height=4)}


def test_sprite_lookup_last_match_wins():
    scene = SceneGraph.from_string(scml("hero", [
        file_xml(0, "a_0.png", 4, 4, pivot=(0.1, 0.1)),
        file_xml(1, "a_0.png", 4, 4, pivot=(0.9, 0.9)),
    ], []))
    assert scene.sprite_pivot("a_0") == (0.9, 0.9)
    assert scene.sprite_pivot("b_0") is None


def test_frame_data_of_missing_key_is_none():
    timelines = SceneGraph.from_string(BALL_SCML).animations()[0].timelines
    assert SceneGraph.frame_data(timelines[0], 7) is None
    assert SceneGraph.frame_data(timelines.get(3), 0) is None


def test_max_visible_symbol_frames_across_animations():
    refs = [object_ref_xml(t, 0, t) for t in range(3)]
    scene = SceneGraph.from_string(scml("hero", [file_xml(0, "a_0.png", 4, 4)], [
        animation_xml("one", mainline_xml([refs[:1], refs])),
        animation_xml("two", mainline_xml([refs[:2]])),
    ]))
    assert scene.max_visible_symbol_frames() == 3


def test_non_animation_entity_child_is_rejected():
    document = scml("hero", [], ['<obj_info name="bone"/>'])
    with pytest.raises(StructuralFormatError, match="children of entity"):
        SceneGraph.from_string(document).animations()


def test_animation_without_mainline_is_rejected():
    document = scml("hero", [], [animation_xml("idle", timeline_xml(0, {0: {"file": "0"}}))])
    with pytest.raises(StructuralFormatError, match="no mainline"):
        SceneGraph.from_string(document).animations()


def test_mainline_child_must_be_key():
    document = scml("hero", [], [animation_xml("idle", "<mainline><frame/></mainline>")])
    with pytest.raises(StructuralFormatError, match="children of mainline"):
        SceneGraph.from_string(document).animations()


def test_mainline_key_child_must_be_object_ref():
    document = scml("hero", [], [animation_xml("idle", '<mainline><key id="0"><bone_ref/></key></mainline>')])
    with pytest.raises(StructuralFormatError, match="children of key"):
        SceneGraph.from_string(document).animations()


def timelines_of(timeline_body):
    body = mainline_xml([[]]) + f'<timeline id="0">{timeline_body}</timeline>'
    document = scml("hero", [], [animation_xml("idle", body)])
    return SceneGraph.from_string(document).animations()[0].timelines


def test_keys_after_a_non_key_timeline_child_are_unreachable():
    timelines = timelines_of(
        '<key id="0"><object file="0"/></key><object file="0"/><key id="1"><object file="0"/></key>'
    )
    assert list(timelines[0].keys) == [0]
    assert SceneGraph.frame_data(timelines[0], 1) is None


def test_keys_after_a_non_integer_key_id_are_unreachable():
    timelines = timelines_of(
        '<key id="0"><object file="0"/></key><key id="one"><object file="0"/></key>'
        '<key id="2"><object file="0"/></key>'
    )
    assert list(timelines[0].keys) == [0]


def test_repeated_key_id_keeps_the_first_key():
    timelines = timelines_of('<key id="0"><object file="0" x="1"/></key><key id="0"><object file="0" x="99"/></key>')
    assert SceneGraph.frame_data(timelines[0], 0).x == "1"


def test_key_without_object_fails_only_when_referenced():
    timelines = timelines_of('<key id="0"/><key id="1"><object file="0"/></key>')

    assert SceneGraph.frame_data(timelines[0], 1) == ObjectData(file="0")
    with pytest.raises(StructuralFormatError, match="no <object> in key 0 of timeline 0"):
        SceneGraph.frame_data(timelines[0], 0)


def test_pretty_printed_keys_count_whitespace_nodes():
    document = """<spriter_data>
    <folder id="0">
        <file id="0" name="a_0.png" width="4" height="4" pivot_x="0" pivot_y="0"/>
    </folder>
    <entity id="0" name="hero">
        <animation id="0" name="idle" interval="100">
            <mainline>
                <key id="0">
                    <object_ref id="0" timeline="0" key="0" z_index="0"/>
                </key>
                <key id="1">
                </key>
            </mainline>
        </animation>
    </entity>
</spriter_data>"""
    scene = SceneGraph.from_string(document)

    assert [key.child_nodes for key in scene.animations()[0].mainline] == [3, 1]
    assert scene.max_visible_symbol_frames() == 3


def test_folder_child_must_be_file():
    document = scml("hero", ['<image id="0"/>'], [])
    with pytest.raises(StructuralFormatError, match="children of folder"):
        SceneGraph.from_string(document).file_map()


def test_missing_entity_is_rejected():
    scene = SceneGraph.from_string("<spriter_data><folder/></spriter_data>")
    with pytest.raises(StructuralFormatError, match="no <entity>"):
        scene.entity_name()


def test_unparseable_document(tmp_path):
    path = tmp_path / "broken.scml"
    path.write_text("<spriter_data>", encoding="utf-8")
    with pytest.raises(StructuralFormatError):
        SceneGraph.load(path)
