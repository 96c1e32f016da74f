"""Tests for recursive normalization of nested literals."""

import pytest

from structfill.config import Settings
from structfill.context import ResolveContext
from structfill.emitter import render
from structfill.errors import (
    CyclicNonPointerComposite,
    TypeNotFound,
    UnresolvableFieldName,
    UnsupportedExpressionShape,
)
from structfill.literals import Opaque, PointerLiteral, RecordLiteral
from structfill.parsing import LiteralParser
from structfill.registry import TypeRegistry, scope_key
from structfill.resolver import resolve_literal
from structfill.types import NamedRef, Scope

MODELS = '''package models

type User struct {
	Name    string
	Age     int
	Address string
}

type ListNode struct {
	Val  int
	Next *ListNode
}

type A struct {
	X int
	B B
}

type B struct {
	Y int
}

type Team struct {
	Lead    *User
	Members []User
	Backup  []*User
	ByName  map[string]User
	Slots   [2]User
	Tags    []string
	Extra   interface{}
}

type Roster []User

type Club struct {
	Roster Roster
}

type Loop struct {
	Next Loop
}
'''


@pytest.fixture
def context(tmp_path):
    (tmp_path / "models.go").write_text(MODELS)
    registry = TypeRegistry(settings=Settings(goroot=None))
    return ResolveContext(registry, Scope(path=scope_key(tmp_path), package="models"))


@pytest.fixture
def parser():
    return LiteralParser()


def _resolve(context, parser, text, type_ref=None):
    return resolve_literal(parser.parse(text), type_ref, context)


class TestScenarios:
    """The reference scenarios for nested and self-referential types."""

    def test_nested_pointer_literal(self, context, parser):
        result = _resolve(context, parser, "ListNode{Next: &ListNode{Val: 5}}")
        assert render(result) == (
            "ListNode{\n"
            "\tVal: 0,\n"
            "\tNext: &ListNode{\n"
            "\t\tVal: 5,\n"
            "\t\tNext: nil,\n"
            "\t},\n"
            "}"
        )

    def test_elided_literal_behind_pointer(self, context, parser):
        result = _resolve(context, parser, "ListNode{Next: {Val: 5}}")
        assert render(result) == (
            "ListNode{\n"
            "\tVal: 0,\n"
            "\tNext: {\n"
            "\t\tVal: 5,\n"
            "\t\tNext: nil,\n"
            "\t},\n"
            "}"
        )

    def test_deep_pointer_chain(self, context, parser):
        result = _resolve(context, parser, "ListNode{Val: 1, Next: &ListNode{Val: 2, Next: &ListNode{}}}")
        inner = result.get("Next").target.get("Next").target
        assert inner.field_names == ["Val", "Next"]
        assert inner.get("Next") == Opaque("nil")

    def test_value_field_filled_with_full_zero(self, context, parser):
        result = _resolve(context, parser, "A{X: 1}")
        assert render(result) == "A{\n\tX: 1,\n\tB: B{\n\t\tY: 0,\n\t},\n}"

    def test_nested_value_literal_normalized(self, context, parser):
        result = _resolve(context, parser, "A{B: B{}}")
        assert render(result) == "A{\n\tX: 0,\n\tB: B{\n\t\tY: 0,\n\t},\n}"

    def test_slice_elements_normalized_independently(self, context, parser):
        result = _resolve(context, parser, 'Team{Members: []User{{Address: "x"}, {Name: "y"}}}')
        members = result.get("Members")
        assert len(members.elements) == 2
        first, second = (e.value for e in members.elements)
        assert first.field_names == ["Name", "Age", "Address"]
        assert first.get("Address") == Opaque('"x"')
        assert second.get("Name") == Opaque('"y"')


class TestContainers:
    def test_top_level_slice(self, context, parser):
        result = _resolve(context, parser, '[]User{{Address: "x"}}')
        assert render(result) == (
            "[]User{\n"
            "\t{\n"
            '\t\tName: "",\n'
            "\t\tAge: 0,\n"
            '\t\tAddress: "x",\n'
            "\t},\n"
            "}"
        )

    def test_opaque_elements_untouched(self, context, parser):
        result = _resolve(context, parser, 'Team{Members: []User{makeUser(), {Age: 1}, users[0]}}')
        values = [e.value for e in result.get("Members").elements]
        assert values[0] == Opaque("makeUser()")
        assert isinstance(values[1], RecordLiteral)
        assert values[2] == Opaque("users[0]")

    def test_pointer_elements(self, context, parser):
        result = _resolve(context, parser, "Team{Backup: []*User{{Age: 1}, &User{}, nil}}")
        values = [e.value for e in result.get("Backup").elements]
        assert values[0].field_names == ["Name", "Age", "Address"]
        assert isinstance(values[1], PointerLiteral)
        assert values[1].target.field_names == ["Name", "Age", "Address"]
        assert values[2] == Opaque("nil")

    def test_map_values_normalized_keys_kept(self, context, parser):
        result = _resolve(context, parser, 'Team{ByName: map[string]User{"z": {Age: 1}, "a": {}}}')
        entries = result.get("ByName").entries
        assert [e.key for e in entries] == ['"z"', '"a"']
        assert [e.value.field_names for e in entries] == [["Name", "Age", "Address"]] * 2

    def test_map_entry_without_key(self, context, parser):
        with pytest.raises(UnsupportedExpressionShape):
            _resolve(context, parser, "Team{ByName: map[string]User{{}}}")

    def test_array_index_keys_kept(self, context, parser):
        result = _resolve(context, parser, "Team{Slots: [2]User{1: {Age: 3}}}")
        elements = result.get("Slots").elements
        assert [e.key for e in elements] == ["1"]
        assert elements[0].value.get("Age") == Opaque("3")

    def test_defined_slice_type(self, context, parser):
        result = _resolve(context, parser, "Club{Roster: Roster{{Name: \"a\"}}}")
        roster = result.get("Roster")
        assert roster.type_text == "Roster"
        assert roster.elements[0].value.field_names == ["Name", "Age", "Address"]

    def test_scalar_slice_kept_verbatim(self, context, parser):
        result = _resolve(context, parser, 'Team{Tags: []string{"b", "a"}}')
        assert result.get("Tags") == Opaque('[]string{"b", "a"}')

    def test_explicit_type_in_interface_field(self, context, parser):
        result = _resolve(context, parser, "Team{Extra: &User{Age: 2}}")
        assert result.get("Extra").target.field_names == ["Name", "Age", "Address"]

    def test_call_arguments_are_opaque(self, context, parser):
        result = _resolve(context, parser, 'Team{Lead: newUser(User{Name: "x"})}')
        assert result.get("Lead") == Opaque('newUser(User{Name: "x"})')

    def test_expected_type_for_untyped_literal(self, context, parser):
        result = _resolve(context, parser, "{Age: 1}", NamedRef("User"))
        assert result.field_names == ["Name", "Age", "Address"]


class TestUnchanged:
    def test_complete_literal_kept_as_authored(self, context, parser):
        text = 'User{Name:"x",  Age: 1,\n\tAddress: "y"}'
        assert _resolve(context, parser, text) == Opaque(text)

    def test_complete_nested_literal_kept_as_authored(self, context, parser):
        text = "ListNode{Val: 1, Next: &ListNode{Val: 2, Next: nil}}"
        assert _resolve(context, parser, text) == Opaque(text)

    def test_only_changed_nested_literal_rebuilt(self, context, parser):
        result = _resolve(context, parser, "ListNode{Val: 1, Next: &ListNode{Val: 2}}")
        assert result.get("Val") == Opaque("1")
        assert isinstance(result.get("Next"), PointerLiteral)


class TestResolverErrors:
    def test_error_in_nested_literal_aborts(self, context, parser):
        with pytest.raises(UnresolvableFieldName):
            _resolve(context, parser, "Team{Members: []User{{}, {Nickname: 1}}}")

    def test_unknown_type(self, context, parser):
        with pytest.raises(TypeNotFound):
            _resolve(context, parser, "Missing{}")

    def test_value_cycle(self, context, parser):
        with pytest.raises(CyclicNonPointerComposite):
            _resolve(context, parser, "Loop{}")

    def test_untyped_literal_without_expected_type(self, context, parser):
        with pytest.raises(UnsupportedExpressionShape):
            _resolve(context, parser, "{Age: 1}")

    def test_not_a_literal(self, context, parser):
        with pytest.raises(UnsupportedExpressionShape):
            _resolve(context, parser, "makeUser()")
