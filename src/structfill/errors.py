"""Errors reported by the struct literal engine."""

from __future__ import annotations


class EngineError(ValueError):
    """Base class for every error the engine returns to its caller."""

    recoverable = False


class TypeNotFound(EngineError):
    """A literal's type, or a nested field's type, is not declared in scope."""

    def __init__(self, name: str, scope: str | None = None) -> None:
        self.name = name
        self.scope = scope
        where = f" in '{scope}'" if scope else ""
        super().__init__(f"Type '{name}' not found{where}")


class DuplicateFieldKey(EngineError):
    """The same field is keyed twice in one literal."""

    def __init__(self, type_name: str, field_name: str) -> None:
        self.type_name = type_name
        self.field_name = field_name
        super().__init__(f"Duplicate field '{field_name}' in {type_name} literal")


class UnresolvableFieldName(EngineError):
    """An authored key does not name any field of the literal's type."""

    def __init__(self, type_name: str, field_name: str) -> None:
        self.type_name = type_name
        self.field_name = field_name
        super().__init__(f"Type '{type_name}' has no field '{field_name}'")


class CyclicNonPointerComposite(EngineError):
    """A chain of value-type fields leads back to a type already being expanded."""

    def __init__(self, path: list[str]) -> None:
        self.path = list(path)
        super().__init__(
            "Cannot build a zero value for a value-type cycle: " + " -> ".join(self.path)
        )


class UnsupportedExpressionShape(EngineError):
    """A literal uses a construct the engine cannot reorder safely."""


class StaleSource(EngineError):
    """Declarations changed while the request was being computed."""

    recoverable = True

    def __init__(self, scopes: list[str]) -> None:
        self.scopes = list(scopes)
        super().__init__(f"Declarations changed during normalization: {', '.join(self.scopes)}")


class LiteralNotFound(EngineError):
    """No typed composite literal encloses the requested position."""
