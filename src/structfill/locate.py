"""Finding the typed composite literal under a cursor."""

from __future__ import annotations

from dataclasses import dataclass

from structfill.parsing.go_lexer import token_end
from structfill.parsing.literal_parser import TYPE_TOKENS, TokenDocument
from structfill.parsing.type_parser import TypeParser
from structfill.types import NamedRef, PointerType, TypeRef

# Tokens after which an expression, and so a literal, may start
_EXPRESSION_STARTS = frozenset({
    "ASSIGN", "DEFINE", "LPAREN", "COMMA", "COLON", "AMP", "LBRACE",
    "RETURN", "ARROW", "RANGE",
})


@dataclass
class LiteralSpan:
    """Token range ``[start, end)`` of a typed literal ``T{...}``."""

    start: int
    end: int
    type_ref: TypeRef


def literal_type(doc: TokenDocument, lbrace: int, type_parser: TypeParser) -> tuple[int, TypeRef] | None:
    """Return the start index and type of the literal opened at *lbrace*.

    None when the brace does not open a typed literal (a block, a struct
    type body, an elided element).
    """
    tokens = doc.tokens
    first = lbrace
    while first > 0 and tokens[first - 1].type in TYPE_TOKENS:
        first -= 1
    # The longest prefix that parses wins: "[]pkg.T" over "pkg.T" over "T"
    for start in range(first, lbrace):
        before = tokens[start - 1].type if start > 0 else None
        if before is not None and before not in _EXPRESSION_STARTS:
            continue
        try:
            type_ref = type_parser.parse_type_tokens(tokens[start:lbrace], doc.source)
        except SyntaxError:
            continue
        if isinstance(type_ref, PointerType):
            continue
        # After "range" a bare type name is the ranged value and the brace opens the loop body
        if before == "RANGE" and isinstance(type_ref, NamedRef):
            continue
        return start, type_ref
    return None


def typed_literals(doc: TokenDocument, offset: int, type_parser: TypeParser) -> list[LiteralSpan]:
    """Return the typed literals enclosing *offset*, innermost first."""
    spans: list[LiteralSpan] = []
    for i, tok in enumerate(doc.tokens):
        if tok.type != "LBRACE" or i not in doc.matches:
            continue
        rbrace = doc.matches[i]
        if token_end(doc.tokens[rbrace]) < offset:
            continue
        found = literal_type(doc, i, type_parser)
        if found is None:
            continue
        start, type_ref = found
        if doc.tokens[start].lexpos <= offset:
            spans.append(LiteralSpan(start=start, end=rbrace + 1, type_ref=type_ref))
    spans.sort(key=lambda s: doc.tokens[s.start].lexpos, reverse=True)
    return spans
