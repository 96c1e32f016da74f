"""Zero values for Go types, as source expressions."""

from __future__ import annotations

from structfill.context import ResolveContext, owner_scope
from structfill.errors import CyclicNonPointerComposite
from structfill.literals import (
    NIL,
    Element,
    MappingLiteral,
    Opaque,
    RecordLiteral,
    SequenceLiteral,
    ValueExpr,
)
from structfill.types import (
    ArrayType,
    DefinedType,
    FieldDefinition,
    InlineStructType,
    MapType,
    NamedRef,
    NilableType,
    PointerType,
    RecordType,
    ScalarType,
    Scope,
    SliceType,
    TypeRef,
)

# Chain of (scope, name) of struct types being expanded by value
Visited = tuple[tuple[str, str], ...]


def zero_value(
    type_ref: TypeRef,
    owner: Scope,
    context: ResolveContext,
    visited: Visited = (),
) -> ValueExpr:
    """Return the zero value of *type_ref*, written in a file of *owner*.

    Pointers are never followed, so self-referential pointer fields end in
    ``nil``. A struct reached again by value through *visited* has no finite
    zero value and raises :class:`CyclicNonPointerComposite`.
    """
    if isinstance(type_ref, ScalarType):
        return Opaque(type_ref.kind.zero_literal)
    if isinstance(type_ref, (PointerType, NilableType)):
        return Opaque(NIL)
    if isinstance(type_ref, InlineStructType):
        return Opaque(type_ref.text + "{}")
    type_text = type_ref.render(context.qualify(owner))
    if isinstance(type_ref, NamedRef):
        return _named_zero(type_ref, type_text, owner, context, visited)
    return _structural_zero(type_ref, type_text, owner, context, visited)


def record_zero(
    record: RecordType,
    type_text: str | None,
    context: ResolveContext,
    visited: Visited = (),
) -> RecordLiteral:
    """Return a literal of *record* with every writable field set to its zero value."""
    if record.key in visited:
        raise CyclicNonPointerComposite([name for _, name in visited] + [record.name])
    chain = visited + (record.key,)
    owner = owner_scope(record)
    fields = []
    for f in record.writable_fields(context.scope.path):
        value = field_zero(f, owner, context, chain)
        if value is not None:
            fields.append(Element(key=f.name, value=value))
    return RecordLiteral(type_text=type_text, fields=fields)


def field_zero(
    f: FieldDefinition,
    owner: Scope,
    context: ResolveContext,
    visited: Visited = (),
) -> ValueExpr | None:
    """Return the zero value to write for field *f*, or None to leave it out.

    A composite zero spells its type, which the invoking file cannot do for
    an unexported type of another package. Such a field is left to Go's
    implicit zero value.
    """
    value = zero_value(f.type_ref, owner, context, visited)
    if isinstance(value, Opaque) or context.nameable(f.type_ref, owner):
        return value
    return None


def _named_zero(
    ref: NamedRef,
    type_text: str,
    owner: Scope,
    context: ResolveContext,
    visited: Visited,
) -> ValueExpr:
    declaration = context.declaration(ref, owner)
    if isinstance(declaration, RecordType):
        return record_zero(declaration, type_text, context, visited)
    if declaration.key in visited:
        raise CyclicNonPointerComposite([name for _, name in visited] + [declaration.name])
    return _defined_zero(declaration, type_text, context, visited + (declaration.key,))


def _defined_zero(
    declaration: DefinedType,
    type_text: str,
    context: ResolveContext,
    visited: Visited,
) -> ValueExpr:
    """Zero value of a named non-struct type, spelled with its own name."""
    underlying = declaration.underlying
    owner = owner_scope(declaration)
    if isinstance(underlying, NamedRef):
        value = _named_zero(
            underlying, underlying.render(context.qualify(owner)), owner, context, visited
        )
    elif isinstance(underlying, (ArrayType, SliceType, MapType)):
        value = _structural_zero(underlying, type_text, owner, context, visited)
    else:
        value = zero_value(underlying, owner, context, visited)
    if isinstance(value, (RecordLiteral, SequenceLiteral, MappingLiteral)):
        value.type_text = type_text
    return value


def _structural_zero(
    type_ref: TypeRef,
    type_text: str,
    owner: Scope,
    context: ResolveContext,
    visited: Visited,
) -> ValueExpr:
    if isinstance(type_ref, SliceType):
        return SequenceLiteral(type_text)
    if isinstance(type_ref, MapType):
        return MappingLiteral(type_text)
    if isinstance(type_ref, ArrayType):
        if not type_ref.length:
            return SequenceLiteral(type_text)
        elements = []
        for _ in range(type_ref.length):
            value = zero_value(type_ref.elem, owner, context, visited)
            if isinstance(value, (RecordLiteral, SequenceLiteral, MappingLiteral)):
                # Element types may be elided inside an array literal
                value.type_text = None
            elements.append(Element(value=value))
        return SequenceLiteral(type_text, elements)
    raise TypeError(f"No zero value for {type_ref!r}")
