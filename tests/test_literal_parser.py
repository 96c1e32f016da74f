"""Tests for the composite literal parser."""

import pytest

from structfill.errors import UnsupportedExpressionShape
from structfill.literals import CompositeLiteral, Opaque, PointerLiteral
from structfill.parsing import LiteralParser
from structfill.parsing.literal_parser import match_brackets
from structfill.types import NamedRef, SliceType


@pytest.fixture
def parser():
    return LiteralParser()


class TestMatchBrackets:
    def test_nested_pairs(self, parser):
        tokens = parser.lexer.tokenize("f(a[0]{b})")
        matches = match_brackets(tokens)
        # f ( a [ 0 ] { b } )
        assert matches[1] == 9
        assert matches[3] == 5
        assert matches[6] == 8
        assert matches[9] == 1

    def test_unbalanced_closer_ignored(self, parser):
        tokens = parser.lexer.tokenize("a) { b }")
        matches = match_brackets(tokens)
        assert 1 not in matches
        assert matches[2] == 4


class TestLiteralParser:
    """Tests for parsing literal expressions."""

    def test_keyed_struct_literal(self, parser):
        literal = parser.parse('User{Name: "x", Age: 3}')
        assert isinstance(literal, CompositeLiteral)
        assert literal.type_text == "User"
        assert literal.type_ref == NamedRef("User")
        assert literal.keys == ["Name", "Age"]
        assert literal.elements[0].value == Opaque('"x"')
        assert literal.text == 'User{Name: "x", Age: 3}'

    def test_span(self, parser):
        literal = parser.parse('User{Name: "x"}')
        assert (literal.start, literal.end) == (0, len('User{Name: "x"}'))

    def test_pointer_literal(self, parser):
        literal = parser.parse("&models.User{}")
        assert isinstance(literal, PointerLiteral)
        assert literal.text == "&models.User{}"
        assert literal.target.type_ref == NamedRef("User", package="models")
        assert literal.target.elements == []

    def test_nested_literals(self, parser):
        literal = parser.parse('Team{Lead: &User{Name: "a"}, Members: []User{{Age: 1}, {}}}')
        lead = literal.elements[0].value
        members = literal.elements[1].value
        assert isinstance(lead, PointerLiteral)
        assert lead.target.keys == ["Name"]
        assert members.type_ref == SliceType(NamedRef("User"))
        assert [e.value.type_text for e in members.elements] == [None, None]
        assert members.elements[0].value.keys == ["Age"]

    def test_multiline_literal(self, parser):
        source = 'User{\n\tName: "x",\n\tAge:  3, // years\n}'
        literal = parser.parse(source)
        assert literal.keys == ["Name", "Age"]
        assert literal.elements[1].value == Opaque("3")

    def test_values_kept_verbatim(self, parser):
        literal = parser.parse("T{A: f(x, y), B: m[k], C: a + b*2, D: func() int { return 1 }()}")
        assert [e.value.text for e in literal.elements] == [
            "f(x, y)", "m[k]", "a + b*2", "func() int { return 1 }()",
        ]

    def test_map_literal_keys(self, parser):
        literal = parser.parse('map[string]User{"a": {Age: 1}, key: {}}')
        assert literal.keys == ['"a"', "key"]

    def test_positional_elements(self, parser):
        literal = parser.parse('Point{1, 2}')
        assert literal.keys == [None, None]

    def test_expression_is_opaque(self, parser):
        assert parser.parse("newUser(name)") == Opaque("newUser(name)")

    def test_block_is_not_a_literal(self, parser):
        assert isinstance(parser.parse("x == y {}"), Opaque)

    def test_spread_rejected(self, parser):
        with pytest.raises(UnsupportedExpressionShape):
            parser.parse("T{Items: xs...}")

    def test_missing_value(self, parser):
        with pytest.raises(SyntaxError):
            parser.parse("T{A: }")
