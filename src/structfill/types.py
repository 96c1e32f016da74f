"""Type model for Go declarations as seen by the struct literal engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Union


class ScalarKind(Enum):
    """Predeclared Go basic types."""

    BOOL = "bool"
    STRING = "string"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    UINTPTR = "uintptr"
    BYTE = "byte"
    RUNE = "rune"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    COMPLEX64 = "complex64"
    COMPLEX128 = "complex128"

    @property
    def zero_literal(self) -> str:
        """Return the source text of this kind's zero value."""
        if self is ScalarKind.BOOL:
            return "false"
        if self is ScalarKind.STRING:
            return '""'
        if self in (ScalarKind.FLOAT32, ScalarKind.FLOAT64):
            return "0.0"
        return "0"


# Mapping from Go type names to ScalarKind values
SCALAR_KIND_NAMES: dict[str, ScalarKind] = {sk.value: sk for sk in ScalarKind}

# Predeclared non-basic types whose zero value is nil
NILABLE_NAMES = frozenset({"error", "any"})


def is_exported(name: str) -> bool:
    """Return whether *name* is visible outside its declaring package."""
    return bool(name) and name[0].isupper()


@dataclass(frozen=True)
class TypeRef:
    """Base class for type expressions found in field declarations."""

    def render(self, qualify: QualifyFn | None = None) -> str:
        """Return Go source text for this type.

        *qualify* maps a named reference to the spelling valid in the file
        the text is emitted into.
        """
        raise NotImplementedError

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class ScalarType(TypeRef):
    kind: ScalarKind

    def render(self, qualify: QualifyFn | None = None) -> str:
        return self.kind.value


@dataclass(frozen=True)
class NamedRef(TypeRef):
    """Reference to a declared type, optionally package-qualified."""

    name: str
    package: str | None = None

    def render(self, qualify: QualifyFn | None = None) -> str:
        if qualify is not None:
            return qualify(self)
        if self.package:
            return f"{self.package}.{self.name}"
        return self.name


@dataclass(frozen=True)
class PointerType(TypeRef):
    elem: TypeRef

    def render(self, qualify: QualifyFn | None = None) -> str:
        return "*" + self.elem.render(qualify)


@dataclass(frozen=True)
class SliceType(TypeRef):
    elem: TypeRef

    def render(self, qualify: QualifyFn | None = None) -> str:
        return "[]" + self.elem.render(qualify)


@dataclass(frozen=True)
class ArrayType(TypeRef):
    """Fixed-size array; ``length`` is None when given by a named constant."""

    elem: TypeRef
    length: int | None
    length_text: str | None = None

    def render(self, qualify: QualifyFn | None = None) -> str:
        size = self.length_text if self.length_text is not None else str(self.length)
        return f"[{size}]" + self.elem.render(qualify)


@dataclass(frozen=True)
class MapType(TypeRef):
    key: TypeRef
    value: TypeRef

    def render(self, qualify: QualifyFn | None = None) -> str:
        return f"map[{self.key.render(qualify)}]{self.value.render(qualify)}"


@dataclass(frozen=True)
class NilableType(TypeRef):
    """Func, chan and interface types; carried as text, zero value is nil."""

    text: str

    def render(self, qualify: QualifyFn | None = None) -> str:
        return self.text


@dataclass(frozen=True)
class InlineStructType(TypeRef):
    """Anonymous ``struct{...}`` type, carried as text."""

    text: str

    def render(self, qualify: QualifyFn | None = None) -> str:
        return self.text


QualifyFn = Callable[[NamedRef], str]


def predeclared(name: str) -> TypeRef | None:
    """Return the type for a predeclared identifier, or None."""
    kind = SCALAR_KIND_NAMES.get(name)
    if kind is not None:
        return ScalarType(kind)
    if name in NILABLE_NAMES:
        return NilableType(name)
    return None


@dataclass(frozen=True)
class FieldDefinition:
    """A field of a struct type, in declaration order."""

    name: str
    type_ref: TypeRef
    tag: str | None = None  # raw struct tag, never interpreted
    embedded: bool = False

    @property
    def exported(self) -> bool:
        return is_exported(self.name)


@dataclass(frozen=True)
class RecordType:
    """A named struct type.

    ``imports`` is the declaring file's alias -> import path map, used to
    resolve package-qualified field types.
    """

    name: str
    scope: str
    fields: tuple[FieldDefinition, ...] = ()
    imports: dict[str, str] = field(default_factory=dict, compare=False)

    @property
    def key(self) -> tuple[str, str]:
        return (self.scope, self.name)

    def get_field(self, name: str) -> FieldDefinition | None:
        """Get a field by name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def is_writable(self, f: FieldDefinition, scope_path: str) -> bool:
        """Return whether a literal in *scope_path* may set field *f*."""
        return f.exported or scope_path == self.scope

    def writable_fields(self, scope_path: str) -> list[FieldDefinition]:
        """Fields a literal written in *scope_path* may set, in declaration order."""
        return [f for f in self.fields if self.is_writable(f, scope_path)]


@dataclass(frozen=True)
class DefinedType:
    """A named non-struct type or alias (``type Status int``, ``type A = B``)."""

    name: str
    scope: str
    underlying: TypeRef
    imports: dict[str, str] = field(default_factory=dict, compare=False)
    is_alias: bool = False

    @property
    def key(self) -> tuple[str, str]:
        return (self.scope, self.name)


Declaration = Union[RecordType, DefinedType]


@dataclass(frozen=True)
class Scope:
    """Invoking context of a literal: its package directory and file imports."""

    path: str
    package: str = ""
    imports: dict[str, str] = field(default_factory=dict, compare=False)
