"""Value expressions found in, and produced for, Go composite literals.

Parsed input uses :class:`Opaque`, :class:`CompositeLiteral` and
:class:`PointerLiteral`. Resolution turns every composite literal the engine
understands into a :class:`RecordLiteral`, :class:`SequenceLiteral` or
:class:`MappingLiteral`; anything it does not need to look into stays (or
becomes) :class:`Opaque`, carrying its source text byte for byte.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from structfill.types import TypeRef

NIL = "nil"


@dataclass
class Opaque:
    """Source text the engine never analyzes."""

    text: str

    @property
    def is_nil(self) -> bool:
        return self.text == NIL


@dataclass
class Element:
    """One entry of a braced literal: ``key: value`` or a bare ``value``.

    For struct literals the key is a field name; for maps it is the key
    expression's source text; for slices and arrays an optional index.
    """

    value: ValueExpr
    key: str | None = None


@dataclass
class CompositeLiteral:
    """A parsed ``T{...}`` (or elided ``{...}``) literal, not yet interpreted."""

    type_text: str | None
    elements: list[Element] = field(default_factory=list)
    text: str = ""
    start: int = 0
    end: int = 0
    type_ref: TypeRef | None = None

    @property
    def keys(self) -> list[str | None]:
        return [e.key for e in self.elements]


@dataclass
class RecordLiteral:
    """A struct literal whose fields are complete and in declaration order."""

    type_text: str | None
    fields: list[Element] = field(default_factory=list)

    def get(self, name: str) -> ValueExpr | None:
        for e in self.fields:
            if e.key == name:
                return e.value
        return None

    @property
    def field_names(self) -> list[str]:
        return [e.key for e in self.fields if e.key is not None]


@dataclass
class SequenceLiteral:
    """A slice or array literal."""

    type_text: str | None
    elements: list[Element] = field(default_factory=list)


@dataclass
class MappingLiteral:
    """A map literal; entry order is kept exactly as authored."""

    type_text: str | None
    entries: list[Element] = field(default_factory=list)


@dataclass
class PointerLiteral:
    """``&T{...}``."""

    target: CompositeLiteral | RecordLiteral
    text: str = ""


ValueExpr = Union[
    Opaque,
    CompositeLiteral,
    RecordLiteral,
    SequenceLiteral,
    MappingLiteral,
    PointerLiteral,
]
