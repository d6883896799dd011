"""Shared test fixtures and configuration."""

import os
from pathlib import Path

import pytest

from quickfind.search.models import FileType, IndexedEntry
from quickfind.search.sqlite_storage import FileIndexStore


# Every setting the tests rely on; anything QUICKFIND_* from the developer's
# shell is cleared so Settings() only sees these values.
TEST_ENV = {
    "QUICKFIND_LOG_LEVEL": "debug",
    "QUICKFIND_LOG_JSON": "true",
    "QUICKFIND_BACKGROUND_INDEXING_ENABLED": "false",
}

FIXED_NOW = 1_700_000_000


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Isolate configuration from the host environment."""
    for key in list(os.environ):
        if key.upper().startswith("QUICKFIND_"):
            monkeypatch.delenv(key, raising=False)
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("QUICKFIND_DB_PATH", str(tmp_path / "env-index.db"))
    # Keep Settings from reading a developer's .env file
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def store(tmp_path):
    """A fresh on-disk index store."""
    index_store = FileIndexStore(tmp_path / "data" / "index.db")
    yield index_store
    index_store.close()


@pytest.fixture
def make_entry():
    """Build an ``IndexedEntry`` with sensible defaults."""

    def _make(filename: str, filepath: str | None = None, **overrides) -> IndexedEntry:
        extension = filename.rsplit(".", 1)[1].lower() if "." in filename.lstrip(".") else ""
        fields = {
            "filename": filename,
            "filepath": filepath or f"/virtual/{filename}",
            "extension": extension,
            "file_size": 10,
            "modified_at": FIXED_NOW - 86_400,
            "file_type": FileType.OTHER,
        }
        fields.update(overrides)
        return IndexedEntry(**fields)

    return _make


@pytest.fixture
def build_tree(tmp_path):
    """Create files and directories from a list of relative paths.

    Paths ending in ``/`` become directories; everything else becomes a
    small file (parents created as needed). Returns the tree root.
    """

    def _build(paths: list[str], root_name: str = "tree") -> Path:
        root = tmp_path / root_name
        root.mkdir(parents=True, exist_ok=True)
        for relative in paths:
            target = root / relative
            if relative.endswith("/"):
                target.mkdir(parents=True, exist_ok=True)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text("x", encoding="utf-8")
        return root

    return _build
