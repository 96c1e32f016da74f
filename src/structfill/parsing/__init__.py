"""Parsing module for Go declarations and composite literals."""

from structfill.parsing.go_lexer import GoLexer
from structfill.parsing.literal_parser import LiteralParser
from structfill.parsing.source_parser import SourceParser
from structfill.parsing.type_parser import TypeParser

__all__ = [
    "GoLexer",
    "LiteralParser",
    "SourceParser",
    "TypeParser",
]
