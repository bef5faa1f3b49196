"""Shared pytest fixtures for ReBackup tests."""
import os
from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

from rebackup.core import logging as rebackup_logging
from rebackup.core.constants import ItemType
from rebackup.core.types import Item, WalkContext, WalkerConfig


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Create a source directory with test files.

    source/
        notes.txt
        docs/readme.md
        docs/guide.md
        photos/cat.jpg
        photos/private/.nomedia
        photos/private/secret.jpg
        empty/
        .git/config
    """
    source = tmp_path / "source"
    source.mkdir()

    (source / "notes.txt").write_text("Some notes")

    (source / "docs").mkdir()
    (source / "docs" / "readme.md").write_text("# Readme")
    (source / "docs" / "guide.md").write_text("# Guide")

    (source / "photos").mkdir()
    (source / "photos" / "cat.jpg").write_bytes(b"\xff\xd8\xff")
    (source / "photos" / "private").mkdir()
    (source / "photos" / "private" / ".nomedia").write_text("")
    (source / "photos" / "private" / "secret.jpg").write_bytes(b"\xff\xd8\xff")

    (source / "empty").mkdir()

    (source / ".git").mkdir()
    (source / ".git" / "config").write_text("[core]")

    return source


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Provide a sample ReBackup configuration."""
    return {
        "rebackup": {
            "walker": {
                "follow_symlinks": False,
                "drop_empty_dirs": True,
            },
            "rules": [
                {"builtin": "dotgit"},
                {
                    "name": "skip-markdown",
                    "type": "exclude",
                    "patterns": ["**/*.md"],
                    "only_for": "file",
                },
            ],
            "output": {
                "absolute": False,
                "sort": True,
            },
            "logging": {
                "level": "WARNING",
                "file": None,
            },
        }
    }


@pytest.fixture
def config_file(tmp_path: Path, sample_config: Dict[str, Any]) -> Path:
    """Create a configuration file."""
    config_path = tmp_path / "rebackup.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config, f)
    return config_path


@pytest.fixture
def make_context():
    """Build a walk context rooted at a directory."""

    def _make(source: Path, config: WalkerConfig = None) -> WalkContext:
        source = Path(os.path.abspath(source))
        return WalkContext(config or WalkerConfig(), source, source.resolve())

    return _make


@pytest.fixture
def make_item():
    """Build an item from an existing path."""

    def _make(path: Path) -> Item:
        return Item(Path(path), ItemType.from_mode(os.lstat(path).st_mode))

    return _make


@pytest.fixture(autouse=True)
def isolate_environment(tmp_path_factory, monkeypatch):
    """Keep user configuration and REBACKUP_* variables out of tests."""
    for key in list(os.environ):
        if key.startswith("REBACKUP_"):
            monkeypatch.delenv(key)

    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    yield


@pytest.fixture(autouse=True)
def reset_loggers():
    """Reset the shared logger registry between tests."""
    saved = dict(rebackup_logging._loggers)
    rebackup_logging._loggers.clear()
    yield
    rebackup_logging._loggers.clear()
    rebackup_logging._loggers.update(saved)
