import pytest

from bktrace.charmatch import is_word_code_point, matches_leaf
from bktrace.nodes import Anchor, CharacterClass, ClassEscape, ClassRange, Dot, Value
from bktrace.units import (
    code_point_at, code_point_before, code_point_width, code_units, unit_length, unit_offset,
)


def test_value_is_code_point_equality():
    assert matches_leaf(Value(ord("a")), ord("a"))
    assert not matches_leaf(Value(ord("a")), ord("A"))


def test_dot():
    assert matches_leaf(Dot(), ord("x"))
    assert matches_leaf(Dot(), ord("\n"))
    assert not matches_leaf(Dot(), ord("\n"), dot_all=False)
    assert matches_leaf(Dot(), 0x1F600, dot_all=False)


ESCAPE_TESTS = [
    # (escape, character, expected)
    ("d", "5", True),
    ("d", "a", False),
    ("D", "a", True),
    ("w", "_", True),
    ("w", "-", False),
    ("W", " ", True),
    ("s", "\t", True),
    ("s", "x", False),
    ("S", "x", True),
]


@pytest.mark.parametrize("escape,char,expected", ESCAPE_TESTS)
def test_class_escapes(escape, char, expected):
    assert matches_leaf(ClassEscape(escape), ord(char)) is expected


def test_character_class_items():
    cls = CharacterClass(False, (ClassRange(ord("a"), ord("c")), ClassEscape("d"), Value(ord("_"))))
    assert matches_leaf(cls, ord("b"))
    assert matches_leaf(cls, ord("7"))
    assert matches_leaf(cls, ord("_"))
    assert not matches_leaf(cls, ord("z"))


def test_negated_character_class():
    cls = CharacterClass(True, (ClassRange(ord("a"), ord("c")),))
    assert matches_leaf(cls, ord("d"))
    assert not matches_leaf(cls, ord("b"))
    # An empty negated class matches anything.
    assert matches_leaf(CharacterClass(True, ()), ord("q"))


def test_non_leaf_raises():
    with pytest.raises(TypeError):
        matches_leaf(Anchor("start"), ord("a"))


def test_word_code_points():
    assert is_word_code_point(ord("a"))
    assert not is_word_code_point(ord(" "))
    assert not is_word_code_point(None)


def test_code_units_split_astral_characters():
    units = code_units("a\U0001F600b")
    assert units == [0x61, 0xD83D, 0xDE00, 0x62]
    assert code_point_at(units, 1) == 0x1F600
    assert code_point_at(units, 2) == 0xDE00
    assert code_point_at(units, 4) is None
    assert code_point_before(units, 3) == 0x1F600
    assert code_point_before(units, 0) is None
    assert code_point_width(0x1F600) == 2
    assert code_point_width(ord("a")) == 1


def test_unit_offsets():
    text = "a\U0001F600b"
    assert unit_offset(text, 0) == 0
    assert unit_offset(text, 2) == 3
    assert unit_length(text) == 4


def test_ignore_case():
    assert matches_leaf(Value(ord("a")), ord("A"), ignore_case=True)
    assert matches_leaf(Value(ord("A")), ord("a"), ignore_case=True)
    assert not matches_leaf(Value(ord("a")), ord("b"), ignore_case=True)
    cls = CharacterClass(False, (ClassRange(ord("a"), ord("f")),))
    assert matches_leaf(cls, ord("D"), ignore_case=True)
    assert not matches_leaf(cls, ord("D"))
    negated = CharacterClass(True, (Value(ord("x")),))
    assert not matches_leaf(negated, ord("X"), ignore_case=True)
