from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from codeindex.errors import ManifestCorruptionError
from codeindex.indexing import Manifest


@pytest.fixture
def manifest(tmp_path: Path):
    with Manifest(tmp_path / "state" / "manifest.sqlite3") as manifest:
        yield manifest


def test_commit_file_replaces_entry(manifest: Manifest) -> None:
    manifest.commit_file("src/a.py", "h1", ["s1", "s2", "s2"])
    manifest.commit_file("src/a.py", "h2", ["s2", "s3"])

    assert manifest.get_file_hash("src/a.py") == "h2"
    assert manifest.get_segments("src/a.py") == {"s2", "s3"}


def test_remove_and_clear(manifest: Manifest) -> None:
    manifest.commit_file("a.py", "h", ["s1"])
    manifest.commit_file("b.py", "h", ["s2"])
    manifest.set_identity("fake:model:16")

    manifest.remove_file("a.py")
    assert manifest.files() == ["b.py"]
    assert manifest.get_segments("a.py") == set()

    manifest.clear()
    assert manifest.files() == []
    assert manifest.get_identity() == "fake:model:16"


def test_state_survives_reopen(tmp_path: Path) -> None:
    path = tmp_path / "manifest.sqlite3"
    with Manifest(path) as manifest:
        manifest.commit_file("a.py", "h", ["s1"])
        manifest.set_identity("id-1")
        manifest.set_identity("id-2")

    with Manifest(path) as reopened:
        assert reopened.files() == ["a.py"]
        assert reopened.get_file_hash("a.py") == "h"
        assert reopened.get_identity() == "id-2"


def test_unreadable_database_raises_corruption_error(tmp_path: Path) -> None:
    path = tmp_path / "manifest.sqlite3"
    path.write_bytes(b"this is not a sqlite database" * 100)

    with pytest.raises(ManifestCorruptionError):
        Manifest(path).open()


def test_missing_table_raises_corruption_error(tmp_path: Path) -> None:
    path = tmp_path / "manifest.sqlite3"
    manifest = Manifest(path).open()
    conn = sqlite3.connect(path)
    conn.execute("DROP TABLE segments")
    conn.commit()
    conn.close()

    with pytest.raises(ManifestCorruptionError):
        manifest.get_segments("a.py")
    manifest.close()
