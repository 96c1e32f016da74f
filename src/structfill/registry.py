"""Registry of Go type declarations, cached per package directory."""

from __future__ import annotations

import logging
import os
import re
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, MutableMapping, Protocol

from structfill.config import Settings
from structfill.errors import TypeNotFound
from structfill.parsing.source_parser import GoFile, SourceParser
from structfill.parsing.type_parser import StructSpec, TypeSpec
from structfill.types import Declaration, DefinedType, NamedRef, RecordType, Scope

log = logging.getLogger(__name__)


def scope_key(path: str | Path) -> str:
    """Normalize a package directory into the key used for caching."""
    return os.path.normpath(os.path.abspath(str(path)))


class SourceProvider(Protocol):
    """Supplies the Go files that make up a package."""

    def package_files(self, scope_path: str) -> list[tuple[str, str]]:
        """Return ``(file_path, text)`` for every Go file of the package."""
        ...


class FileSystemSource:
    """Reads package files from disk, preferring unsaved editor buffers."""

    def __init__(self) -> None:
        self._overlay: dict[str, str] = {}
        self._lock = threading.Lock()

    def set_overlay(self, file_path: str | Path, text: str) -> None:
        with self._lock:
            self._overlay[scope_key(file_path)] = text

    def clear_overlay(self, file_path: str | Path) -> None:
        with self._lock:
            self._overlay.pop(scope_key(file_path), None)

    def package_files(self, scope_path: str) -> list[tuple[str, str]]:
        with self._lock:
            overlay = {
                p: text for p, text in self._overlay.items() if os.path.dirname(p) == scope_path
            }
        files: dict[str, str] = {}
        directory = Path(scope_path)
        if directory.is_dir():
            for entry in sorted(directory.glob("*.go")):
                key = scope_key(entry)
                if key in overlay or not entry.is_file():
                    continue
                try:
                    files[key] = entry.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError) as e:
                    log.debug("Cannot read %s: %s", entry, e)
        files.update(overlay)
        return sorted(files.items())


@dataclass
class _Module:
    root: Path
    path: str
    requires: dict[str, str] = field(default_factory=dict)
    replaces: dict[str, str] = field(default_factory=dict)


_REQUIRE_RE = re.compile(r"^\s*(?:require\s+)?(\S+)\s+(v\S+)")
_REPLACE_RE = re.compile(r"^\s*(?:replace\s+)?(\S+)(?:\s+v\S+)?\s+=>\s+(\S+)(?:\s+(v\S+))?")


def escape_module_path(path: str) -> str:
    """Escape upper-case letters the way the module cache does (``A`` -> ``!a``)."""
    return re.sub(r"[A-Z]", lambda m: "!" + m.group(0).lower(), path)


def parse_go_mod(text: str, root: Path) -> _Module:
    """Read the module path, requirements and replacements of a go.mod file."""
    module = _Module(root=root, path="")
    block: str | None = None
    for raw in text.splitlines():
        line = raw.split("//", 1)[0].strip()
        if not line:
            continue
        if block is not None:
            if line == ")":
                block = None
                continue
            line = f"{block} {line}"
        elif line.endswith("("):
            block = line[:-1].strip()
            continue
        if line.startswith("module "):
            module.path = line.split(None, 1)[1].strip('"')
        elif line.startswith("require "):
            m = _REQUIRE_RE.match(line)
            if m:
                module.requires[m.group(1)] = m.group(2)
        elif line.startswith("replace "):
            m = _REPLACE_RE.match(line)
            if m:
                target = m.group(2)
                if m.group(3):
                    target = f"{target}@{m.group(3)}"
                module.replaces[m.group(1)] = target
    return module


class PackageLocator:
    """Maps import paths to package directories.

    Looks in the importing module itself, its ``replace`` directives, its
    ``vendor`` directory, the module cache and finally ``GOROOT/src``.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings.from_env()
        self._modules: dict[str, _Module | None] = {}
        self._lock = threading.Lock()

    def module_for(self, directory: str | Path) -> _Module | None:
        """Return the module enclosing *directory*, if any."""
        start = Path(scope_key(directory))
        key = str(start)
        with self._lock:
            if key in self._modules:
                return self._modules[key]
        module = None
        for candidate in (start, *start.parents):
            go_mod = candidate / "go.mod"
            if go_mod.is_file():
                module = parse_go_mod(go_mod.read_text(encoding="utf-8"), candidate)
                break
        with self._lock:
            self._modules[key] = module
        return module

    def forget(self, directory: str | Path) -> None:
        """Drop cached go.mod data for modules at or below *directory*."""
        prefix = scope_key(directory)
        with self._lock:
            for key in [k for k in self._modules if k.startswith(prefix)]:
                del self._modules[key]

    def locate(self, import_path: str, from_dir: str | Path) -> str | None:
        """Return the directory of *import_path* as seen from *from_dir*."""
        module = self.module_for(from_dir)
        if module is not None:
            found = self._locate_in_module(import_path, module)
            if found is not None:
                return found
        if self.settings.goroot is not None:
            std = self.settings.goroot / "src" / import_path
            if std.is_dir():
                return scope_key(std)
        return None

    def _locate_in_module(self, import_path: str, module: _Module) -> str | None:
        if module.path and (import_path == module.path or import_path.startswith(module.path + "/")):
            rest = import_path[len(module.path):].lstrip("/")
            return scope_key(module.root / rest)
        for prefix, target in module.replaces.items():
            if import_path == prefix or import_path.startswith(prefix + "/"):
                rest = import_path[len(prefix):].lstrip("/")
                if target.startswith((".", "/")):
                    return scope_key((module.root / target / rest).resolve())
                return scope_key(self.settings.module_cache / escape_module_path(target) / rest)
        vendored = module.root / "vendor" / import_path
        if vendored.is_dir():
            return scope_key(vendored)
        best = ""
        for required in module.requires:
            if (import_path == required or import_path.startswith(required + "/")) and len(required) > len(best):
                best = required
        if best:
            rest = import_path[len(best):].lstrip("/")
            version = module.requires[best]
            cached = self.settings.module_cache / f"{escape_module_path(best)}@{version}" / rest
            return scope_key(cached)
        return None


@dataclass(frozen=True)
class PackageSnapshot:
    """Immutable view of one package's declarations at a given epoch."""

    path: str
    epoch: int
    package: str
    declarations: Mapping[str, Declaration]


class TypeRegistry:
    """Registry of declared types, keyed by package directory and type name.

    Each package is parsed into a :class:`PackageSnapshot` that is published
    with a single dictionary assignment, so readers always see either the old
    or the new snapshot in full. Files are read and parsed without holding
    the lock; a snapshot whose package was invalidated while it was being
    built is returned to its requester but never published.
    """

    def __init__(
        self,
        source: SourceProvider | None = None,
        locator: PackageLocator | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.source = source if source is not None else FileSystemSource()
        self.locator = locator or PackageLocator(self.settings)
        self._snapshots: dict[str, PackageSnapshot] = {}
        self._epochs: dict[str, int] = {}
        self._lock = threading.Lock()
        self._local = threading.local()

    @property
    def parser(self) -> SourceParser:
        """Per-thread source parser; ply parsers keep state while parsing."""
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = SourceParser()
            self._local.parser = parser
        return parser

    def epoch(self, scope_path: str) -> int:
        """Return the modification epoch of a package directory."""
        return self._epochs.get(scope_key(scope_path), 0)

    def invalidate(self, scope_path: str | Path) -> None:
        """Mark a package's declarations as changed."""
        key = scope_key(scope_path)
        with self._lock:
            self._epochs[key] = self._epochs.get(key, 0) + 1
            self._snapshots.pop(key, None)
        log.debug("Invalidated %s (epoch %d)", key, self._epochs[key])

    def snapshot(self, scope_path: str) -> PackageSnapshot:
        """Return the declarations of a package, building them if needed."""
        key = scope_key(scope_path)
        snapshot = self._snapshots.get(key)
        if snapshot is not None:
            return snapshot
        return self._build(key)

    def _build(self, key: str) -> PackageSnapshot:
        epoch = self.epoch(key)
        declarations: dict[str, Declaration] = {}
        package = ""
        for file_path, text in self.source.package_files(key):
            try:
                go_file = self.parser.parse(text)
            except SyntaxError as e:
                log.debug("Skipping %s: %s", file_path, e)
                continue
            package = package or go_file.package
            self._collect(go_file, key, declarations)
        snapshot = PackageSnapshot(
            path=key, epoch=epoch, package=package, declarations=MappingProxyType(declarations)
        )
        with self._lock:
            if self._epochs.get(key, 0) == epoch:
                self._snapshots[key] = snapshot
        log.debug("Built %s: %d declarations (epoch %d)", key, len(declarations), epoch)
        return snapshot

    @staticmethod
    def _collect(go_file: GoFile, scope: str, declarations: dict[str, Declaration]) -> None:
        imports = go_file.import_map
        for spec in go_file.type_specs:
            if spec.name in declarations:
                log.debug("Duplicate declaration of %s in %s ignored", spec.name, scope)
                continue
            declarations[spec.name] = _declaration(spec, scope, imports)

    def scope_for_file(self, file_path: str | Path, text: str | None = None) -> Scope:
        """Build the invoking scope of a file from its package clause and imports."""
        if text is None:
            text = Path(file_path).read_text(encoding="utf-8")
        go_file = self.parser.parse(text)
        return Scope(
            path=scope_key(os.path.dirname(scope_key(file_path))),
            package=go_file.package,
            imports=go_file.import_map,
        )

    def resolve(
        self,
        scope_path: str,
        type_name: str,
        epochs: MutableMapping[str, int] | None = None,
    ) -> Declaration:
        """Return the declaration of *type_name* in a package.

        When *epochs* is given, the epoch of the snapshot consulted is
        recorded in it.
        """
        snapshot = self.snapshot(scope_path)
        if epochs is not None:
            epochs.setdefault(snapshot.path, snapshot.epoch)
        declaration = snapshot.declarations.get(type_name)
        if declaration is None:
            raise TypeNotFound(type_name, snapshot.path)
        return declaration

    def resolve_ref(
        self,
        ref: NamedRef,
        scope_path: str,
        imports: Mapping[str, str],
        epochs: MutableMapping[str, int] | None = None,
    ) -> Declaration:
        """Resolve a possibly qualified name as written in a file of *scope_path*."""
        if ref.package is None:
            return self.resolve(scope_path, ref.name, epochs)
        target = self.import_scope(ref.package, scope_path, imports, epochs)
        if target is None:
            raise TypeNotFound(f"{ref.package}.{ref.name}", scope_key(scope_path))
        return self.resolve(target, ref.name, epochs)

    def import_scope(
        self,
        qualifier: str,
        scope_path: str,
        imports: Mapping[str, str],
        epochs: MutableMapping[str, int] | None = None,
    ) -> str | None:
        """Return the package directory a qualifier refers to, or None."""
        import_path = imports.get(qualifier)
        if import_path is not None:
            found = self.locator.locate(import_path, scope_path)
            if found is not None:
                return found
        # The qualifier may be a package name that differs from its path
        for candidate in imports.values():
            found = self.locator.locate(candidate, scope_path)
            if found is None:
                continue
            snapshot = self.snapshot(found)
            if snapshot.package == qualifier:
                if epochs is not None:
                    epochs.setdefault(snapshot.path, snapshot.epoch)
                return found
        return None

    def resolve_record(
        self,
        ref: NamedRef,
        scope_path: str,
        imports: Mapping[str, str],
        epochs: MutableMapping[str, int] | None = None,
    ) -> RecordType:
        """Resolve *ref* to a struct type, following defined types and aliases."""
        seen: set[tuple[str, str]] = set()
        declaration = self.resolve_ref(ref, scope_path, imports, epochs)
        while isinstance(declaration, DefinedType):
            if declaration.key in seen or not isinstance(declaration.underlying, NamedRef):
                raise TypeNotFound(ref.render(), scope_key(scope_path))
            seen.add(declaration.key)
            declaration = self.resolve_ref(
                declaration.underlying, declaration.scope, declaration.imports, epochs
            )
        return declaration


def _declaration(spec: TypeSpec, scope: str, imports: dict[str, str]) -> Declaration:
    if isinstance(spec.definition, StructSpec):
        return RecordType(
            name=spec.name, scope=scope, fields=tuple(spec.definition.fields), imports=imports
        )
    return DefinedType(
        name=spec.name,
        scope=scope,
        underlying=spec.definition,
        imports=imports,
        is_alias=spec.is_alias,
    )
