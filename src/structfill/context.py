"""Request-local state shared by the synthesizer, normalizer and resolver."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from structfill.errors import CyclicNonPointerComposite, StaleSource
from structfill.registry import TypeRegistry
from structfill.types import (
    ArrayType,
    Declaration,
    MapType,
    NamedRef,
    PointerType,
    QualifyFn,
    RecordType,
    Scope,
    SliceType,
    TypeRef,
    is_exported,
)


def owner_scope(declaration: Declaration) -> Scope:
    """The scope a declaration's type expressions were written in."""
    return Scope(path=declaration.scope, imports=declaration.imports)


@dataclass
class ResolveContext:
    """State of one normalization request.

    Attributes:
        registry: Shared type registry.
        scope: Scope of the file the literal is written in.
        epochs: Epoch of every package consulted, for staleness checks.
    """

    registry: TypeRegistry
    scope: Scope
    epochs: dict[str, int] = field(default_factory=dict)
    _qualifiers: dict[str, str] = field(default_factory=dict)

    def declaration(self, ref: NamedRef, owner: Scope) -> Declaration:
        """Resolve *ref* as written in a file of *owner*."""
        return self.registry.resolve_ref(ref, owner.path, owner.imports, self.epochs)

    def expand(self, type_ref: TypeRef, owner: Scope) -> tuple[TypeRef | RecordType, Scope]:
        """Follow named non-struct types down to a struct or a type literal."""
        seen: list[str] = []
        while isinstance(type_ref, NamedRef):
            declaration = self.declaration(type_ref, owner)
            if isinstance(declaration, RecordType):
                return declaration, owner_scope(declaration)
            if declaration.name in seen:
                raise CyclicNonPointerComposite(seen + [declaration.name])
            seen.append(declaration.name)
            type_ref, owner = declaration.underlying, owner_scope(declaration)
        return type_ref, owner

    def nameable(self, type_ref: TypeRef, owner: Scope) -> bool:
        """Whether the invoking file may spell *type_ref*, written in a file of *owner*.

        Unexported names can only be written inside their own package.
        """
        if isinstance(type_ref, NamedRef):
            if is_exported(type_ref.name):
                return True
            return type_ref.package is None and owner.path == self.scope.path
        if isinstance(type_ref, (PointerType, SliceType, ArrayType)):
            return self.nameable(type_ref.elem, owner)
        if isinstance(type_ref, MapType):
            return self.nameable(type_ref.key, owner) and self.nameable(type_ref.value, owner)
        return True

    def qualify(self, owner: Scope) -> QualifyFn:
        """Return a function spelling names written in *owner* for the invoking file."""

        def _qualify(ref: NamedRef) -> str:
            if ref.package is None:
                target = owner.path
            else:
                target = self.registry.import_scope(
                    ref.package, owner.path, owner.imports, self.epochs
                )
                if target is None:
                    return ref.render()
            if target == self.scope.path:
                return ref.name
            return f"{self._qualifier(target, ref.package)}.{ref.name}"

        return _qualify

    def _qualifier(self, target: str, fallback: str | None) -> str:
        cached = self._qualifiers.get(target)
        if cached is not None:
            return cached
        qualifier = None
        for alias, import_path in self.scope.imports.items():
            if self.registry.locator.locate(import_path, self.scope.path) == target:
                qualifier = alias
                break
        if qualifier is None:
            # Not imported by the invoking file; use the package's own name
            qualifier = fallback or self.registry.snapshot(target).package or os.path.basename(target)
        self._qualifiers[target] = qualifier
        return qualifier

    def check_fresh(self) -> None:
        """Raise StaleSource if any consulted package changed since it was read."""
        stale = [path for path, epoch in self.epochs.items() if self.registry.epoch(path) != epoch]
        if stale:
            raise StaleSource(sorted(stale))
