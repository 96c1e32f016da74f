"""Runtime settings read from the environment."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path


def _default_gopath() -> Path:
    return Path.home() / "go"


def _default_goroot() -> Path | None:
    """Locate the Go installation from the `go` binary on PATH."""
    go = shutil.which("go")
    if go is None:
        return None
    return Path(go).resolve().parent.parent


def indent_unit(value: str) -> str:
    """Read an indent setting: a number means that many spaces, anything else is literal."""
    return " " * int(value) if value.isdigit() else value


@dataclass(frozen=True)
class Settings:
    """Settings shared by the registry, the emitter and the entry points.

    Attributes:
        indent: One level of indentation in emitted literals.
        log_level: Level name for the CLI and language server loggers.
        goroot: Go installation, for resolving standard library packages.
        gopath: Go workspace; the module cache defaults to ``gopath/pkg/mod``.
        gomodcache: Module cache directory, overriding the gopath default.
    """

    indent: str = "\t"
    log_level: str = "WARNING"
    goroot: Path | None = None
    gopath: Path = field(default_factory=_default_gopath)
    gomodcache: Path | None = None

    @property
    def module_cache(self) -> Path:
        return self.gomodcache or self.gopath / "pkg" / "mod"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        """Build settings from ``STRUCTFILL_*`` and the usual Go variables."""
        env = os.environ if environ is None else environ
        indent = indent_unit(env.get("STRUCTFILL_INDENT") or "\t")
        gopath = (env.get("GOPATH") or "").strip()
        goroot = (env.get("GOROOT") or "").strip()
        gomodcache = (env.get("GOMODCACHE") or "").strip()
        return cls(
            indent=indent,
            log_level=(env.get("STRUCTFILL_LOG_LEVEL") or "WARNING").strip().upper(),
            goroot=Path(goroot) if goroot else _default_goroot(),
            # GOPATH may list several directories; the first holds the module cache
            gopath=Path(gopath.split(os.pathsep)[0]) if gopath else _default_gopath(),
            gomodcache=Path(gomodcache) if gomodcache else None,
        )
