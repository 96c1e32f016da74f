"""Reader for the declarations of a Go source file.

Only ``package``, ``import`` and ``type`` declarations are read; functions,
variables and constants are skipped a statement at a time.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

import ply.lex as lex

from structfill.parsing.type_parser import TypeParser, TypeSpec

log = logging.getLogger(__name__)

_MAJOR_VERSION_RE = re.compile(r"v\d+")


def default_package_name(import_path: str) -> str:
    """Guess the package name an import path is referred to by.

    ``github.com/x/y/v2`` -> ``y``, ``gopkg.in/yaml.v3`` -> ``yaml``,
    ``github.com/x/go-redis`` -> ``redis``.
    """
    parts = [p for p in import_path.split("/") if p]
    if not parts:
        return ""
    last = parts[-1]
    if _MAJOR_VERSION_RE.fullmatch(last) and len(parts) > 1:
        last = parts[-2]
    last = re.sub(r"\.v\d+$", "", last)
    if last.startswith("go-"):
        last = last[3:]
    if last.endswith("-go"):
        last = last[:-3]
    return last.replace("-", "_").replace(".", "_")


@dataclass
class ImportSpec:
    """One import; ``alias`` is None when the package name is implied."""

    path: str
    alias: str | None = None

    @property
    def name(self) -> str:
        return self.alias if self.alias is not None else default_package_name(self.path)


@dataclass
class GoFile:
    """Declarations read from one Go file."""

    package: str = ""
    imports: list[ImportSpec] = field(default_factory=list)
    type_specs: list[TypeSpec] = field(default_factory=list)

    @property
    def import_map(self) -> dict[str, str]:
        """Map of package qualifier -> import path (blank and dot imports left out)."""
        return {
            spec.name: spec.path
            for spec in self.imports
            if spec.alias not in ("_", ".")
        }


def _unquote(literal: str) -> str:
    return literal[1:-1]


class SourceParser:
    """Parser for the top-level declarations of Go files."""

    def __init__(self, type_parser: TypeParser | None = None) -> None:
        self.type_parser = type_parser or TypeParser()
        self.lexer = self.type_parser.lexer

    def parse(self, source: str) -> GoFile:
        """Parse *source* and return its package, imports and type specs."""
        tokens = self.lexer.tokenize(source)
        result = GoFile()
        i = 0
        while i < len(tokens):
            tok = tokens[i]
            end = self._statement_end(tokens, i)
            if tok.type == "PACKAGE" and i + 1 < end:
                result.package = tokens[i + 1].value
            elif tok.type == "IMPORT":
                for spec in self._group(tokens, i + 1, end):
                    result.imports.append(self._import_spec(spec))
            elif tok.type == "TYPE":
                for spec in self._group(tokens, i + 1, end):
                    try:
                        result.type_specs.append(self.type_parser.parse_spec(spec, source))
                    except SyntaxError as e:
                        # Generic and malformed declarations are not modeled
                        log.debug("Skipping type declaration at line %d: %s", spec[0].lineno, e)
            i = end + 1
        return result

    @staticmethod
    def _statement_end(tokens: list[lex.LexToken], start: int) -> int:
        """Index of the SEMICOLON ending the statement at *start* (depth 0)."""
        depth = 0
        for k in range(start, len(tokens)):
            kind = tokens[k].type
            if kind in ("LPAREN", "LBRACKET", "LBRACE"):
                depth += 1
            elif kind in ("RPAREN", "RBRACKET", "RBRACE"):
                depth = max(depth - 1, 0)
            elif kind == "SEMICOLON" and depth == 0:
                return k
        return len(tokens)

    def _group(self, tokens: list[lex.LexToken], start: int, end: int) -> list[list[lex.LexToken]]:
        """Split ``( spec; spec; )`` or a single spec into per-spec token lists."""
        if start >= end:
            return []
        if tokens[start].type != "LPAREN":
            return [tokens[start:end]]
        specs: list[list[lex.LexToken]] = []
        i = start + 1
        while i < end:
            if tokens[i].type in ("SEMICOLON", "RPAREN"):
                i += 1
                continue
            j = self._statement_end(tokens, i)
            # The closing paren of the group may end the last spec
            spec = tokens[i:min(j, end)]
            if spec and spec[-1].type == "RPAREN" and j >= end - 1:
                depth = sum(
                    1 if t.type == "LPAREN" else -1 if t.type == "RPAREN" else 0 for t in spec
                )
                if depth < 0:
                    spec = spec[:-1]
            if spec:
                specs.append(spec)
            i = j + 1
        return specs

    @staticmethod
    def _import_spec(tokens: list[lex.LexToken]) -> ImportSpec:
        path_tok = tokens[-1]
        if path_tok.type not in ("STRING", "RAW_STRING"):
            raise SyntaxError(f"Syntax error at '{path_tok.value}' (position {path_tok.lexpos})")
        alias = tokens[0].value if len(tokens) > 1 else None
        return ImportSpec(path=_unquote(path_tok.value), alias=alias)
