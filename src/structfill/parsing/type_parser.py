"""Parser for Go type declarations and type expressions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import ply.lex as lex
import ply.yacc as yacc

from structfill.parsing.go_lexer import GoLexer, token_end
from structfill.types import (
    ArrayType,
    FieldDefinition,
    InlineStructType,
    MapType,
    NamedRef,
    NilableType,
    PointerType,
    SliceType,
    TypeRef,
    predeclared,
)


@dataclass
class StructSpec:
    """A ``struct{...}`` type expression before it is bound to a name."""

    fields: list[FieldDefinition]
    text: str


@dataclass
class TypeSpec:
    """A single ``Name Type`` or ``Name = Type`` declaration."""

    name: str
    definition: TypeRef | StructSpec
    is_alias: bool = False


@dataclass
class _FieldGroup:
    names: list[str]
    type_ref: TypeRef
    tag: str | None = None
    embedded: bool = False


@dataclass
class TokenStream:
    """Feeds a list of Go tokens to the yacc parser.

    Parenthesized groups after ``func`` (and a parenthesized result list
    right after them) become a single PARAMS token, and the braces after
    ``interface`` a single BODY token; the grammar never looks inside them.
    """

    tokens: list[lex.LexToken]
    source: str
    _pos: int = field(default=0, init=False)
    _prev: str | None = field(default=None, init=False)

    def input(self, data: Any) -> None:
        self._pos = 0
        self._prev = None

    def token(self) -> lex.LexToken | None:
        if self._pos >= len(self.tokens):
            return None
        tok = self.tokens[self._pos]
        self._pos += 1
        if tok.type == "LPAREN" and self._prev in ("FUNC", "PARAMS"):
            tok = self._collapse(tok, "PARAMS", "LPAREN", "RPAREN")
        elif tok.type == "LBRACE" and self._prev == "INTERFACE":
            tok = self._collapse(tok, "BODY", "LBRACE", "RBRACE")
        self._prev = tok.type
        return tok

    def _collapse(self, start: lex.LexToken, kind: str, opener: str, closer: str) -> lex.LexToken:
        depth = 1
        end = start
        while self._pos < len(self.tokens) and depth:
            end = self.tokens[self._pos]
            self._pos += 1
            if end.type == opener:
                depth += 1
            elif end.type == closer:
                depth -= 1
        if depth:
            raise SyntaxError(f"Unbalanced '{start.value}' (position {start.lexpos})")
        tok = lex.LexToken()
        tok.type = kind
        tok.value = self.source[start.lexpos:token_end(end)]
        tok.lexpos = start.lexpos
        tok.lineno = start.lineno
        return tok


def _array_length(text: str) -> int:
    digits = text.replace("_", "")
    if len(digits) > 1 and digits[0] == "0" and digits[1].isdigit():
        return int(digits, 8)
    return int(digits, 0)


class TypeParser:
    """Parser for Go type specs (``Name struct{...}``) and type expressions."""

    tokens = GoLexer.tokens + ["PARAMS", "BODY"]

    def __init__(self) -> None:
        self.lexer = GoLexer()
        self.lexer.build()
        self._spec_parser: yacc.LRParser | None = None
        self._expr_parser: yacc.LRParser | None = None
        self._source = ""

    # ---- Declarations ----

    def p_type_spec(self, p: yacc.YaccProduction) -> None:
        """type_spec : IDENTIFIER type_expr
                     | IDENTIFIER type_expr SEMICOLON"""
        p[0] = TypeSpec(name=p[1], definition=p[2])

    def p_type_spec_alias(self, p: yacc.YaccProduction) -> None:
        """type_spec : IDENTIFIER ASSIGN type_expr
                     | IDENTIFIER ASSIGN type_expr SEMICOLON"""
        p[0] = TypeSpec(name=p[1], definition=p[3], is_alias=True)

    # ---- Type expressions ----

    def p_type_expr_name(self, p: yacc.YaccProduction) -> None:
        """type_expr : type_name"""
        p[0] = p[1]

    def p_type_expr_pointer(self, p: yacc.YaccProduction) -> None:
        """type_expr : STAR type_expr"""
        p[0] = PointerType(self._as_type(p[2]))

    def p_type_expr_slice(self, p: yacc.YaccProduction) -> None:
        """type_expr : LBRACKET RBRACKET type_expr"""
        p[0] = SliceType(self._as_type(p[3]))

    def p_type_expr_array(self, p: yacc.YaccProduction) -> None:
        """type_expr : LBRACKET array_len RBRACKET type_expr"""
        length, length_text = p[2]
        p[0] = ArrayType(self._as_type(p[4]), length, length_text)

    def p_type_expr_map(self, p: yacc.YaccProduction) -> None:
        """type_expr : MAP LBRACKET type_expr RBRACKET type_expr"""
        p[0] = MapType(self._as_type(p[3]), self._as_type(p[5]))

    def p_type_expr_chan(self, p: yacc.YaccProduction) -> None:
        """type_expr : CHAN type_expr"""
        p[0] = NilableType("chan " + self._as_type(p[2]).render())

    def p_type_expr_recv_chan(self, p: yacc.YaccProduction) -> None:
        """type_expr : ARROW CHAN type_expr"""
        p[0] = NilableType("<-chan " + self._as_type(p[3]).render())

    def p_type_expr_send_chan(self, p: yacc.YaccProduction) -> None:
        """type_expr : CHAN ARROW type_expr"""
        p[0] = NilableType("chan<- " + self._as_type(p[3]).render())

    def p_type_expr_func(self, p: yacc.YaccProduction) -> None:
        """type_expr : FUNC PARAMS
                     | FUNC PARAMS PARAMS
                     | FUNC PARAMS type_expr"""
        text = "func" + p[2]
        if len(p) == 4:
            result = p[3] if isinstance(p[3], str) else self._as_type(p[3]).render()
            text += " " + result
        p[0] = NilableType(text)

    def p_type_expr_interface(self, p: yacc.YaccProduction) -> None:
        """type_expr : INTERFACE BODY"""
        p[0] = NilableType("interface" + p[2])

    def p_type_expr_struct(self, p: yacc.YaccProduction) -> None:
        """type_expr : STRUCT LBRACE field_decls RBRACE"""
        text = self._source[p.lexpos(1):p.lexpos(4) + 1]
        p[0] = StructSpec(fields=p[3], text=text)

    def p_type_expr_paren(self, p: yacc.YaccProduction) -> None:
        """type_expr : LPAREN type_expr RPAREN"""
        p[0] = p[2]

    def p_type_name(self, p: yacc.YaccProduction) -> None:
        """type_name : IDENTIFIER"""
        p[0] = predeclared(p[1]) or NamedRef(p[1])

    def p_type_name_qualified(self, p: yacc.YaccProduction) -> None:
        """type_name : IDENTIFIER DOT IDENTIFIER"""
        p[0] = NamedRef(p[3], package=p[1])

    def p_array_len_int(self, p: yacc.YaccProduction) -> None:
        """array_len : INT"""
        p[0] = (_array_length(p[1]), None)

    def p_array_len_const(self, p: yacc.YaccProduction) -> None:
        """array_len : IDENTIFIER
                     | ELLIPSIS"""
        p[0] = (None, p[1])

    def p_array_len_qualified(self, p: yacc.YaccProduction) -> None:
        """array_len : IDENTIFIER DOT IDENTIFIER"""
        p[0] = (None, f"{p[1]}.{p[3]}")

    # ---- Struct fields ----

    def p_field_decls_empty(self, p: yacc.YaccProduction) -> None:
        """field_decls : """
        p[0] = []

    def p_field_decls(self, p: yacc.YaccProduction) -> None:
        """field_decls : field_seq
                       | field_seq SEMICOLON"""
        fields: list[FieldDefinition] = []
        for group in p[1]:
            for name in group.names:
                fields.append(FieldDefinition(
                    name=name, type_ref=group.type_ref, tag=group.tag, embedded=group.embedded
                ))
        p[0] = fields

    def p_field_seq_single(self, p: yacc.YaccProduction) -> None:
        """field_seq : field_decl"""
        p[0] = [p[1]]

    def p_field_seq_multiple(self, p: yacc.YaccProduction) -> None:
        """field_seq : field_seq SEMICOLON field_decl"""
        p[0] = p[1] + [p[3]]

    def p_field_decl(self, p: yacc.YaccProduction) -> None:
        """field_decl : ident_list type_expr opt_tag"""
        p[0] = _FieldGroup(names=p[1], type_ref=self._as_type(p[2]), tag=p[3])

    def p_field_decl_embedded(self, p: yacc.YaccProduction) -> None:
        """field_decl : type_name opt_tag"""
        p[0] = _FieldGroup(names=[self._embedded_name(p[1])], type_ref=p[1], tag=p[2], embedded=True)

    def p_field_decl_embedded_pointer(self, p: yacc.YaccProduction) -> None:
        """field_decl : STAR type_name opt_tag"""
        p[0] = _FieldGroup(
            names=[self._embedded_name(p[2])], type_ref=PointerType(p[2]), tag=p[3], embedded=True
        )

    def p_ident_list_single(self, p: yacc.YaccProduction) -> None:
        """ident_list : IDENTIFIER"""
        p[0] = [p[1]]

    def p_ident_list_multiple(self, p: yacc.YaccProduction) -> None:
        """ident_list : ident_list COMMA IDENTIFIER"""
        p[0] = p[1] + [p[3]]

    def p_opt_tag_empty(self, p: yacc.YaccProduction) -> None:
        """opt_tag : """
        p[0] = None

    def p_opt_tag(self, p: yacc.YaccProduction) -> None:
        """opt_tag : STRING
                   | RAW_STRING"""
        p[0] = p[1]

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (position {p.lexpos})")
        else:
            raise SyntaxError("Syntax error at end of input")

    # ---- Helpers ----

    @staticmethod
    def _as_type(value: TypeRef | StructSpec) -> TypeRef:
        if isinstance(value, StructSpec):
            return InlineStructType(value.text)
        return value

    @staticmethod
    def _embedded_name(type_ref: TypeRef) -> str:
        if isinstance(type_ref, NamedRef):
            return type_ref.name
        return type_ref.render()

    def build(self, **kwargs: Any) -> None:
        """Build the parsers."""
        kwargs.setdefault("debug", False)
        kwargs.setdefault("write_tables", False)
        kwargs.setdefault("errorlog", yacc.NullLogger())
        self._spec_parser = yacc.yacc(module=self, start="type_spec", **kwargs)
        self._expr_parser = yacc.yacc(module=self, start="type_expr", **kwargs)

    def parse_spec(self, tokens: list[lex.LexToken], source: str) -> TypeSpec:
        """Parse the tokens of one type spec (without the ``type`` keyword)."""
        if self._spec_parser is None:
            self.build()
        self._source = source
        return self._spec_parser.parse(lexer=TokenStream(list(tokens), source))

    def parse_type_tokens(self, tokens: list[lex.LexToken], source: str) -> TypeRef:
        """Parse a type expression given as tokens of *source*."""
        if self._expr_parser is None:
            self.build()
        self._source = source
        return self._as_type(self._expr_parser.parse(lexer=TokenStream(list(tokens), source)))

    def parse_type(self, text: str) -> TypeRef:
        """Parse a type expression such as ``[]*pkg.User``."""
        tokens = [t for t in self.lexer.tokenize(text) if not (t.type == "SEMICOLON" and not t.value)]
        if not tokens:
            raise SyntaxError("Syntax error at end of input")
        return self.parse_type_tokens(tokens, text)
