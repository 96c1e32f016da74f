"""Merging of an authored struct literal with its type's field order."""

from __future__ import annotations

import re

from structfill.context import ResolveContext, owner_scope
from structfill.errors import DuplicateFieldKey, UnresolvableFieldName, UnsupportedExpressionShape
from structfill.literals import CompositeLiteral, Element, RecordLiteral, ValueExpr
from structfill.types import RecordType
from structfill.zero import Visited, field_zero

_FIELD_NAME_RE = re.compile(r"[^\W\d]\w*")


def authored_fields(record: RecordType, literal: CompositeLiteral) -> dict[str, ValueExpr]:
    """Map each keyed field of *literal* to its value, in authored order.

    Raises:
        UnsupportedExpressionShape: An element has no key, or its key is not a field name.
        DuplicateFieldKey: A field is keyed more than once.
    """
    values: dict[str, ValueExpr] = {}
    for element in literal.elements:
        if element.key is None:
            raise UnsupportedExpressionShape(
                f"Positional elements in {record.name} literal cannot be reordered"
            )
        name = element.key.strip()
        if not _FIELD_NAME_RE.fullmatch(name):
            raise UnsupportedExpressionShape(f"'{name}' is not a field name of {record.name}")
        if name in values:
            raise DuplicateFieldKey(record.name, name)
        values[name] = element.value
    return values


def normalize(
    record: RecordType,
    literal: CompositeLiteral,
    context: ResolveContext,
    visited: Visited = (),
) -> RecordLiteral:
    """Return *literal* with its fields completed and in declaration order.

    Authored values are returned as they are; missing fields get the zero
    value of their type. Keys naming fields the invoking package may not
    set are dropped, since a literal there could not have set them. A
    missing field whose zero value would name a type the invoking package
    cannot see stays missing.
    """
    values = authored_fields(record, literal)
    for name in values:
        if record.get_field(name) is None:
            raise UnresolvableFieldName(record.name, name)
    chain = visited + (record.key,)
    owner = owner_scope(record)
    merged: list[Element] = []
    for f in record.writable_fields(context.scope.path):
        if f.name in values:
            merged.append(Element(key=f.name, value=values[f.name]))
            continue
        value = field_zero(f, owner, context, chain)
        if value is not None:
            merged.append(Element(key=f.name, value=value))
    return RecordLiteral(type_text=literal.type_text, fields=merged)
