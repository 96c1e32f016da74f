"""Parser for Go composite literals.

Only the structure the engine needs is recovered: braced literals, their
``key: value`` elements and ``&`` in front of them. Every other expression
is kept as an :class:`~structfill.literals.Opaque` slice of the source.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import ply.lex as lex

from structfill.errors import UnsupportedExpressionShape
from structfill.literals import CompositeLiteral, Element, Opaque, PointerLiteral, ValueExpr
from structfill.parsing.go_lexer import token_end
from structfill.parsing.type_parser import TypeParser

OPENERS = {"LPAREN": "RPAREN", "LBRACKET": "RBRACKET", "LBRACE": "RBRACE"}
CLOSERS = {v: k for k, v in OPENERS.items()}

# Tokens that may spell the type in front of a literal's opening brace
TYPE_TOKENS = frozenset({
    "IDENTIFIER", "DOT", "LBRACKET", "RBRACKET", "INT", "ELLIPSIS", "STAR", "MAP",
})

SEPARATORS = frozenset({"COMMA", "SEMICOLON"})


def match_brackets(tokens: list[lex.LexToken]) -> dict[int, int]:
    """Pair up bracket tokens by index, in both directions.

    Unbalanced brackets are tolerated: a closer without its opener is left
    unmatched, so a half-edited document still yields usable pairs.
    """
    stack: list[int] = []
    matches: dict[int, int] = {}
    for i, tok in enumerate(tokens):
        if tok.type in OPENERS:
            stack.append(i)
        elif tok.type in CLOSERS:
            opener = CLOSERS[tok.type]
            if opener not in (tokens[j].type for j in stack):
                continue
            while tokens[stack[-1]].type != opener:
                stack.pop()
            j = stack.pop()
            matches[j] = i
            matches[i] = j
    return matches


@dataclass
class TokenDocument:
    """Tokens of a source text with their bracket pairing."""

    tokens: list[lex.LexToken]
    source: str
    matches: dict[int, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.matches:
            self.matches = match_brackets(self.tokens)

    def text(self, start: int, end: int) -> str:
        """Return the source text covered by ``tokens[start:end]``."""
        return self.source[self.tokens[start].lexpos:token_end(self.tokens[end - 1])]

    def position(self, index: int) -> int:
        return self.tokens[index].lexpos if index < len(self.tokens) else len(self.source)


class LiteralParser:
    """Parser for composite literal expressions."""

    def __init__(self, type_parser: TypeParser | None = None) -> None:
        self.type_parser = type_parser or TypeParser()
        self.lexer = self.type_parser.lexer

    def document(self, source: str) -> TokenDocument:
        """Tokenize *source* into a :class:`TokenDocument`."""
        return TokenDocument(self.lexer.tokenize(source), source)

    def parse(self, text: str) -> ValueExpr:
        """Parse a single value expression such as ``&User{Name: "x"}``."""
        doc = self.document(text)
        end = len(doc.tokens)
        while end and doc.tokens[end - 1].type == "SEMICOLON" and not doc.tokens[end - 1].value:
            end -= 1
        return self.parse_value(doc, 0, end)

    def parse_value(self, doc: TokenDocument, start: int, end: int) -> ValueExpr:
        """Parse the value expression spanning ``doc.tokens[start:end]``."""
        if start >= end:
            raise SyntaxError(f"Missing value (position {doc.position(start)})")
        tokens = doc.tokens
        if tokens[end - 1].type == "ELLIPSIS":
            raise UnsupportedExpressionShape(
                f"Spread expression '{doc.text(start, end)}' cannot be placed in a keyed literal"
            )
        if tokens[start].type == "AMP" and start + 1 < end:
            literal = self._composite(doc, start + 1, end)
            if literal is not None:
                return PointerLiteral(literal, text=doc.text(start, end))
            return Opaque(doc.text(start, end))
        literal = self._composite(doc, start, end)
        if literal is not None:
            return literal
        return Opaque(doc.text(start, end))

    def _composite(self, doc: TokenDocument, start: int, end: int) -> CompositeLiteral | None:
        tokens = doc.tokens
        last = end - 1
        if tokens[last].type != "RBRACE":
            return None
        lbrace = doc.matches.get(last)
        if lbrace is None or lbrace < start:
            return None
        type_text = None
        type_ref = None
        if lbrace > start:
            prefix = tokens[start:lbrace]
            if any(t.type not in TYPE_TOKENS for t in prefix):
                return None
            try:
                type_ref = self.type_parser.parse_type_tokens(prefix, doc.source)
            except SyntaxError:
                return None
            type_text = doc.text(start, lbrace)
        return CompositeLiteral(
            type_text=type_text,
            elements=self._elements(doc, lbrace + 1, last),
            text=doc.text(start, end),
            start=tokens[start].lexpos,
            end=token_end(tokens[last]),
            type_ref=type_ref,
        )

    def _elements(self, doc: TokenDocument, start: int, end: int) -> list[Element]:
        elements: list[Element] = []
        i = start
        while i < end:
            tok = doc.tokens[i]
            if tok.type == "SEMICOLON" and not tok.value:
                i += 1
                continue
            j = self._element_end(doc, i, end)
            if j == i:
                raise SyntaxError(f"Syntax error at '{tok.value}' (position {tok.lexpos})")
            elements.append(self._element(doc, i, j))
            i = j + 1
        return elements

    def _element_end(self, doc: TokenDocument, start: int, end: int) -> int:
        k = start
        while k < end:
            tok = doc.tokens[k]
            if tok.type in OPENERS:
                close = doc.matches.get(k)
                if close is None or close >= end:
                    raise SyntaxError(f"Unbalanced '{tok.value}' (position {tok.lexpos})")
                k = close + 1
                continue
            if tok.type in SEPARATORS:
                return k
            k += 1
        return end

    def _element(self, doc: TokenDocument, start: int, end: int) -> Element:
        k = start
        while k < end:
            tok = doc.tokens[k]
            if tok.type in OPENERS:
                k = doc.matches[k] + 1
                continue
            if tok.type == "COLON":
                if k == start:
                    raise SyntaxError(f"Missing key (position {tok.lexpos})")
                return Element(key=doc.text(start, k), value=self.parse_value(doc, k + 1, end))
            k += 1
        return Element(value=self.parse_value(doc, start, end))
