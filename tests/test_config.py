"""Tests for settings read from the environment."""

import os
from pathlib import Path

import pytest

from structfill.config import Settings, indent_unit


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.indent == "\t"
        assert settings.log_level == "WARNING"
        assert settings.module_cache == settings.gopath / "pkg" / "mod"

    def test_from_env(self, tmp_path):
        settings = Settings.from_env({
            "STRUCTFILL_INDENT": "4",
            "STRUCTFILL_LOG_LEVEL": "debug",
            "GOROOT": str(tmp_path / "goroot"),
            "GOPATH": str(tmp_path / "gopath"),
        })
        assert settings.indent == "    "
        assert settings.log_level == "DEBUG"
        assert settings.goroot == tmp_path / "goroot"
        assert settings.module_cache == tmp_path / "gopath" / "pkg" / "mod"

    def test_gomodcache_overrides_gopath(self, tmp_path):
        settings = Settings.from_env({
            "GOROOT": str(tmp_path),
            "GOMODCACHE": str(tmp_path / "cache"),
        })
        assert settings.module_cache == tmp_path / "cache"

    def test_first_gopath_entry(self, tmp_path):
        first, second = tmp_path / "a", tmp_path / "b"
        settings = Settings.from_env({"GOROOT": str(tmp_path), "GOPATH": f"{first}{os.pathsep}{second}"})
        assert settings.gopath == first

    def test_missing_gopath_uses_home(self, tmp_path):
        settings = Settings.from_env({"GOROOT": str(tmp_path)})
        assert settings.gopath == Path.home() / "go"


@pytest.mark.parametrize("value, expected", [("2", "  "), ("\t", "\t"), ("  ", "  ")])
def test_indent_unit(value, expected):
    assert indent_unit(value) == expected
