"""Rendering of resolved literals back to Go source."""

from __future__ import annotations

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


def render(value: ValueExpr, indent: str = "", unit: str = "\t") -> str:
    """Render *value* as Go source.

    *indent* is the indentation of the line the value starts on; nested
    lines get one more *unit*. Opaque values and unresolved literals are
    written exactly as authored.
    """
    if isinstance(value, (Opaque, CompositeLiteral)):
        return value.text
    if isinstance(value, PointerLiteral):
        return "&" + render(value.target, indent, unit)
    if isinstance(value, RecordLiteral):
        return _braced(value.type_text, value.fields, indent, unit)
    if isinstance(value, SequenceLiteral):
        if _is_flat(value.elements):
            inner = ", ".join(_element(e, indent, unit) for e in value.elements)
            return f"{value.type_text or ''}{{{inner}}}"
        return _braced(value.type_text, value.elements, indent, unit)
    if isinstance(value, MappingLiteral):
        return _braced(value.type_text, value.entries, indent, unit)
    raise TypeError(f"Cannot render {value!r}")


def _braced(type_text: str | None, elements: list[Element], indent: str, unit: str) -> str:
    head = f"{type_text or ''}{{"
    if not elements:
        return head + "}"
    inner = indent + unit
    lines = [head]
    for e in elements:
        lines.append(f"{inner}{_element(e, inner, unit)},")
    lines.append(indent + "}")
    return "\n".join(lines)


def _element(e: Element, indent: str, unit: str) -> str:
    text = render(e.value, indent, unit)
    return text if e.key is None else f"{e.key}: {text}"


def _is_flat(elements: list[Element]) -> bool:
    """Whether a sequence reads best on one line: short unkeyed scalar elements."""
    return all(
        e.key is None and isinstance(e.value, Opaque) and "\n" not in e.value.text
        for e in elements
    )
