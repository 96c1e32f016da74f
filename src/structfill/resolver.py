"""Recursive normalization of literals nested inside a struct literal."""

from __future__ import annotations

from structfill.context import ResolveContext, owner_scope
from structfill.errors import UnsupportedExpressionShape
from structfill.literals import (
    CompositeLiteral,
    Element,
    MappingLiteral,
    Opaque,
    PointerLiteral,
    RecordLiteral,
    SequenceLiteral,
    ValueExpr,
)
from structfill.normalize import normalize
from structfill.types import ArrayType, MapType, PointerType, RecordType, Scope, SliceType, TypeRef
from structfill.zero import Visited


def resolve_deep(
    literal: CompositeLiteral,
    record: RecordType,
    context: ResolveContext,
    visited: Visited = (),
) -> ValueExpr:
    """Normalize *literal* and every literal nested in its fields.

    Returns ``Opaque(literal.text)`` when nothing needed to change, so the
    authored layout of a literal that is already complete is kept.
    """
    merged = normalize(record, literal, context, visited)
    chain = visited + (record.key,)
    owner = owner_scope(record)
    for element in merged.fields:
        f = record.get_field(element.key)
        element.value = resolve_value(element.value, f.type_ref, owner, context, chain)
    return _keep_unchanged(literal, merged.fields, merged)


def resolve_value(
    value: ValueExpr,
    type_ref: TypeRef | None,
    owner: Scope,
    context: ResolveContext,
    visited: Visited = (),
) -> ValueExpr:
    """Resolve a value written where *type_ref* (declared in *owner*) is expected.

    *visited* is the chain of structs being expanded by value above this
    value. A pointer ends the chain, so ``&T{...}`` and elided pointer
    elements start over with an empty one.
    """
    if isinstance(value, PointerLiteral):
        target_type = type_ref.elem if isinstance(type_ref, PointerType) else None
        target = resolve_value(value.target, target_type, owner, context, ())
        if isinstance(target, Opaque):
            return Opaque(value.text)
        return PointerLiteral(target, text=value.text)
    if not isinstance(value, CompositeLiteral):
        return value

    if value.type_ref is not None:
        # An explicit type is written in, and resolved from, the invoking file
        type_ref, owner = value.type_ref, context.scope
    elif isinstance(type_ref, PointerType):
        type_ref, visited = type_ref.elem, ()
    if type_ref is None:
        raise UnsupportedExpressionShape(f"Cannot tell the type of literal '{value.text}'")

    target, target_owner = context.expand(type_ref, owner)
    if isinstance(target, RecordType):
        return resolve_deep(value, target, context, visited)
    if isinstance(target, SliceType):
        elements = _resolve_elements(value, target.elem, target_owner, context, ())
        return _keep_unchanged(value, elements, SequenceLiteral(value.type_text, elements))
    if isinstance(target, ArrayType):
        elements = _resolve_elements(value, target.elem, target_owner, context, visited)
        return _keep_unchanged(value, elements, SequenceLiteral(value.type_text, elements))
    if isinstance(target, MapType):
        if any(e.key is None for e in value.elements):
            raise UnsupportedExpressionShape(f"Map literal '{value.text}' has an entry without a key")
        entries = _resolve_elements(value, target.value, target_owner, context, ())
        return _keep_unchanged(value, entries, MappingLiteral(value.type_text, entries))
    return Opaque(value.text)


def resolve_literal(
    literal: ValueExpr,
    type_ref: TypeRef | None,
    context: ResolveContext,
) -> ValueExpr:
    """Resolve a top-level literal written in the invoking file."""
    if not isinstance(literal, (CompositeLiteral, PointerLiteral)):
        raise UnsupportedExpressionShape("Not a composite literal")
    if isinstance(literal, PointerLiteral) and type_ref is not None:
        type_ref = PointerType(type_ref)
    return resolve_value(literal, type_ref, context.scope, context)


def _resolve_elements(
    literal: CompositeLiteral,
    elem_type: TypeRef,
    owner: Scope,
    context: ResolveContext,
    visited: Visited,
) -> list[Element]:
    return [
        Element(key=e.key, value=resolve_value(e.value, elem_type, owner, context, visited))
        for e in literal.elements
    ]


def _source_text(value: ValueExpr) -> str | None:
    if isinstance(value, (Opaque, CompositeLiteral, PointerLiteral)):
        return value.text
    return None


def _keep_unchanged(
    original: CompositeLiteral,
    elements: list[Element],
    resolved: RecordLiteral | SequenceLiteral | MappingLiteral,
) -> ValueExpr:
    """Return the original text if resolution kept every element as authored."""
    if [e.key for e in elements] != original.keys:
        return resolved
    for before, after in zip(original.elements, elements):
        if not isinstance(after.value, Opaque) or after.value.text != _source_text(before.value):
            return resolved
    return Opaque(original.text)
