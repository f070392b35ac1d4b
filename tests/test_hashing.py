import pytest

from kanim.hashing import NameHashTable, kanim_hash


def reference_hash(name):
    value = 0
    for char in name.lower():
        value = (value * 65599 + ord(char)) % 2 ** 32
    return value - 2 ** 32 if value >= 2 ** 31 else value


def test_empty_and_none_hash_to_zero():
    assert kanim_hash("") == 0
    assert kanim_hash(None) == 0


def test_hash_is_case_insensitive():
    assert kanim_hash("Foo") == kanim_hash("foo")
    assert kanim_hash("IDLE_Loop") == kanim_hash("idle_loop")


@pytest.mark.parametrize("name, expected", [
    ("a", 97),
    ("ab", 6363201),
    ("abc", 807794786),
    ("ball", -3415041),
    ("idle", 1190512564),
])
def test_pinned_values(name, expected):
    assert kanim_hash(name) == expected


@pytest.mark.parametrize("name", [
    "head", "left_upper_arm", "Walk_Cycle_Long_Name_With_Many_Characters", "x" * 200,
])
def test_wraps_like_32_bit_arithmetic(name):
    value = kanim_hash(name)
    assert value == reference_hash(name)
    assert -2 ** 31 <= value < 2 ** 31


def test_table_hashes_once_and_keeps_first_seen_order():
    table = NameHashTable()
    assert table.add("torso") == kanim_hash("torso")
    table.add("head")
    table.add("torso")

    assert len(table) == 2
    assert [name for name, _ in table.items()] == ["torso", "head"]
    assert "head" in table
    assert table.get("tail") is None
