"""Tests for the struct literal language server helper functions."""

import pytest
from lsprotocol import types
from pygls.workspace import PositionCodec

from structfill import Engine, Settings, TypeRegistry
from structfill.lsp.server import (
    FILL_TITLE,
    build_fill_action,
    lexpos_to_position,
    position_to_offset,
)


# ---------------------------------------------------------------------------
# lexpos_to_position
# ---------------------------------------------------------------------------


class TestLexposToPosition:
    def test_start_of_single_line(self):
        pos = lexpos_to_position("hello", 0)
        assert pos == types.Position(line=0, character=0)

    def test_start_of_second_line(self):
        pos = lexpos_to_position("abc\ndef", 4)
        assert pos == types.Position(line=1, character=0)

    def test_middle_of_third_line(self):
        source = "line0\nline1\nline2"
        pos = lexpos_to_position(source, 14)
        assert pos == types.Position(line=2, character=2)

    def test_end_of_source(self):
        pos = lexpos_to_position("ab\ncd", 5)
        assert pos == types.Position(line=1, character=2)


# ---------------------------------------------------------------------------
# position_to_offset
# ---------------------------------------------------------------------------


class TestPositionToOffset:
    def test_first_line(self):
        assert position_to_offset("hello", types.Position(line=0, character=3)) == 3

    def test_later_line(self):
        assert position_to_offset("ab\ncd\nef", types.Position(line=2, character=1)) == 7

    def test_character_past_line_end_clamped(self):
        assert position_to_offset("ab\ncd", types.Position(line=0, character=10)) == 2

    def test_line_past_end_clamped(self):
        assert position_to_offset("ab\ncd", types.Position(line=5, character=0)) == 5

    @pytest.mark.parametrize("offset", [0, 4, 9])
    def test_inverse_of_lexpos_to_position(self, offset):
        source = "ab\ncdef\nghij"
        assert position_to_offset(source, lexpos_to_position(source, offset)) == offset


# ---------------------------------------------------------------------------
# UTF-16 client positions
# ---------------------------------------------------------------------------


class TestClientUnits:
    """Characters outside the Basic Multilingual Plane take two UTF-16 units."""

    SOURCE = 'x = "😀"\ny := "😀😀", 1'

    def test_lexpos_to_position(self):
        pos = lexpos_to_position(self.SOURCE, 6, PositionCodec())
        assert pos == types.Position(line=0, character=7)

    def test_position_to_offset(self):
        offset = position_to_offset(self.SOURCE, types.Position(line=0, character=7), PositionCodec())
        assert offset == 6

    def test_character_past_line_end_clamped(self):
        offset = position_to_offset(self.SOURCE, types.Position(line=0, character=99), PositionCodec())
        assert offset == 7

    @pytest.mark.parametrize("offset", [0, 5, 7, 12, 15, 18])
    def test_round_trip(self, offset):
        codec = PositionCodec()
        pos = lexpos_to_position(self.SOURCE, offset, codec)
        assert position_to_offset(self.SOURCE, pos, codec) == offset


# ---------------------------------------------------------------------------
# build_fill_action
# ---------------------------------------------------------------------------

MODELS_GO = '''package main

type User struct {
	Name string
	Age  int
}
'''

MAIN_GO = '''package main

func f() {
	u := User{Age: 1}
	_ = u
}
'''


class TestBuildFillAction:
    @pytest.fixture
    def engine(self, tmp_path):
        (tmp_path / "models.go").write_text(MODELS_GO)
        (tmp_path / "main.go").write_text(MAIN_GO)
        return Engine(TypeRegistry(settings=Settings(goroot=None)))

    def test_action_replaces_literal(self, engine, tmp_path):
        path = str(tmp_path / "main.go")
        action = build_fill_action(engine, "file:///main.go", path, MAIN_GO, MAIN_GO.index("Age"))
        assert action.title == FILL_TITLE
        assert action.kind == types.CodeActionKind.RefactorRewrite
        [edit] = action.edit.changes["file:///main.go"]
        assert edit.range == types.Range(
            start=types.Position(line=3, character=6),
            end=types.Position(line=3, character=18),
        )
        assert edit.new_text == 'User{\n\t\tName: "",\n\t\tAge: 1,\n\t}'

    def test_no_action_for_complete_literal(self, engine, tmp_path):
        source = MAIN_GO.replace("{Age: 1}", '{Name: "n", Age: 1}')
        path = str(tmp_path / "main.go")
        assert build_fill_action(engine, "file:///main.go", path, source, source.index("Age")) is None

    def test_no_action_on_error(self, engine, tmp_path):
        source = MAIN_GO.replace("{Age: 1}", "{Age: 1, Age: 2}")
        path = str(tmp_path / "main.go")
        assert build_fill_action(engine, "file:///main.go", path, source, source.index("Age")) is None

    def test_no_action_outside_literal(self, engine, tmp_path):
        path = str(tmp_path / "main.go")
        assert build_fill_action(engine, "file:///main.go", path, MAIN_GO, 0) is None

    def test_range_in_utf16_units(self, engine, tmp_path):
        source = MAIN_GO.replace("u := User{Age: 1}", 's, u := "😀", User{Age: 1}')
        path = str(tmp_path / "main.go")
        action = build_fill_action(
            engine, "file:///main.go", path, source, source.index("Age"), PositionCodec()
        )
        [edit] = action.edit.changes["file:///main.go"]
        assert edit.range == types.Range(
            start=types.Position(line=3, character=15),
            end=types.Position(line=3, character=27),
        )
