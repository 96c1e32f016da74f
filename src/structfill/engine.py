"""Entry points that tie the registry, resolver and emitter together."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from structfill.config import Settings
from structfill.context import ResolveContext
from structfill.emitter import render
from structfill.errors import (
    EngineError,
    LiteralNotFound,
    TypeNotFound,
    UnsupportedExpressionShape,
)
from structfill.literals import CompositeLiteral, Opaque, PointerLiteral, ValueExpr
from structfill.locate import typed_literals
from structfill.parsing.literal_parser import LiteralParser
from structfill.registry import TypeRegistry
from structfill.resolver import resolve_literal
from structfill.types import ArrayType, MapType, PointerType, RecordType, Scope, SliceType, TypeRef

log = logging.getLogger(__name__)


@dataclass
class NormalizeResult:
    """Outcome of one request: replacement text or the error that prevented it.

    ``start`` and ``end`` are the character offsets of the literal the text
    replaces, in the source it was read from.
    """

    text: str | None = None
    error: EngineError | None = None
    changed: bool = False
    start: int = 0
    end: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    def apply(self, source: str) -> str:
        """Return *source* with the literal replaced."""
        if self.error is not None:
            raise self.error
        return source[:self.start] + self.text + source[self.end:]


def line_indent(source: str, offset: int) -> str:
    """Return the leading whitespace of the line containing *offset*."""
    line_start = source.rfind("\n", 0, offset) + 1
    end = line_start
    while end < len(source) and source[end] in " \t":
        end += 1
    return source[line_start:end]


def _span(literal: ValueExpr) -> tuple[int, int]:
    if isinstance(literal, PointerLiteral):
        return literal.target.end - len(literal.text), literal.target.end
    if isinstance(literal, CompositeLiteral):
        return literal.start, literal.end
    return 0, 0


class Engine:
    """Normalizes struct literals against the declarations in a registry.

    Requests may run concurrently from several threads; they share only
    the registry.
    """

    def __init__(self, registry: TypeRegistry | None = None, settings: Settings | None = None) -> None:
        if settings is None:
            settings = registry.settings if registry is not None else Settings.from_env()
        self.settings = settings
        self.registry = registry or TypeRegistry(settings=settings)
        self._local = threading.local()

    @property
    def parser(self) -> LiteralParser:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = LiteralParser()
            self._local.parser = parser
        return parser

    def normalize_literal(
        self,
        literal: ValueExpr,
        type_ref: TypeRef | None,
        scope: Scope,
        indent: str = "",
    ) -> NormalizeResult:
        """Normalize a parsed literal written in a file of *scope*.

        *type_ref* is the type the literal is expected to have; it may be
        None when the literal spells its own type. Errors are returned in
        the result, never raised, and no text is produced for a literal
        with an error anywhere inside it.
        """
        start, end = _span(literal)
        context = ResolveContext(self.registry, scope)
        try:
            resolved = resolve_literal(literal, type_ref, context)
            context.check_fresh()
        except EngineError as e:
            log.info("Cannot normalize literal at %d: %s", start, e)
            return NormalizeResult(error=e, start=start, end=end)
        if isinstance(resolved, Opaque):
            return NormalizeResult(text=resolved.text, start=start, end=end)
        text = render(resolved, indent, self.settings.indent)
        return NormalizeResult(text=text, changed=True, start=start, end=end)

    def normalize_text(self, text: str, scope: Scope, type_ref: TypeRef | None = None) -> NormalizeResult:
        """Parse and normalize a literal given as source text."""
        try:
            literal = self.parser.parse(text)
        except SyntaxError as e:
            return NormalizeResult(error=UnsupportedExpressionShape(str(e)), end=len(text))
        except EngineError as e:
            return NormalizeResult(error=e, end=len(text))
        return self.normalize_literal(literal, type_ref, scope)

    def fill_at(self, file_path: str | Path, source: str, offset: int) -> NormalizeResult:
        """Normalize the innermost typed literal of *source* enclosing *offset*.

        Literals whose type cannot hold a struct, or is not declared in
        scope, are passed over for the next enclosing one.
        """
        try:
            scope = self.registry.scope_for_file(file_path, source)
            doc = self.parser.document(source)
        except SyntaxError as e:
            return NormalizeResult(error=UnsupportedExpressionShape(str(e)))
        not_found: TypeNotFound | None = None
        for span in typed_literals(doc, offset, self.parser.type_parser):
            try:
                if not self._fillable(span.type_ref, scope):
                    continue
            except TypeNotFound as e:
                not_found = not_found or e
                continue
            except EngineError as e:
                return NormalizeResult(error=e)
            try:
                literal = self.parser.parse_value(doc, span.start, span.end)
            except SyntaxError as e:
                return NormalizeResult(error=UnsupportedExpressionShape(str(e)))
            except EngineError as e:
                return NormalizeResult(error=e)
            indent = line_indent(source, doc.tokens[span.start].lexpos)
            return self.normalize_literal(literal, None, scope, indent)
        return NormalizeResult(error=not_found or LiteralNotFound(f"No struct literal at offset {offset}"))

    def _fillable(self, type_ref: TypeRef, scope: Scope) -> bool:
        return _holds_record(type_ref, scope, ResolveContext(self.registry, scope))


def _holds_record(
    type_ref: TypeRef,
    owner: Scope,
    context: ResolveContext,
    seen: tuple[TypeRef, ...] = (),
) -> bool:
    """Whether values of *type_ref* are, or contain, struct literals."""
    while isinstance(type_ref, PointerType):
        type_ref = type_ref.elem
    if type_ref in seen:
        return False
    target, owner = context.expand(type_ref, owner)
    seen = seen + (type_ref,)
    if isinstance(target, RecordType):
        return True
    if isinstance(target, (SliceType, ArrayType)):
        return _holds_record(target.elem, owner, context, seen)
    if isinstance(target, MapType):
        return _holds_record(target.value, owner, context, seen)
    return False
