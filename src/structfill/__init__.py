"""structfill - Complete and reorder Go struct literals to match their declarations."""

__version__ = "0.1.0"

from structfill.config import Settings
from structfill.engine import Engine, NormalizeResult
from structfill.errors import (
    CyclicNonPointerComposite,
    DuplicateFieldKey,
    EngineError,
    LiteralNotFound,
    StaleSource,
    TypeNotFound,
    UnresolvableFieldName,
    UnsupportedExpressionShape,
)
from structfill.registry import FileSystemSource, PackageLocator, TypeRegistry
from structfill.types import (
    FieldDefinition,
    NamedRef,
    RecordType,
    Scope,
    TypeRef,
)

__all__ = [
    # Main API
    "Engine",
    "NormalizeResult",
    "Settings",
    # Registry
    "TypeRegistry",
    "FileSystemSource",
    "PackageLocator",
    # Type model
    "FieldDefinition",
    "NamedRef",
    "RecordType",
    "Scope",
    "TypeRef",
    # Errors
    "EngineError",
    "TypeNotFound",
    "DuplicateFieldKey",
    "UnresolvableFieldName",
    "CyclicNonPointerComposite",
    "UnsupportedExpressionShape",
    "StaleSource",
    "LiteralNotFound",
]
