from __future__ import annotations

import os
from pathlib import Path

from codeindex.indexing import FileScanner


def write(root: Path, relative: str, content: str = "print('x')\n") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def relative_names(scanner: FileScanner) -> list[str]:
    return [scanner.relative(path) for path in scanner]


def test_scan_filters_extensions_and_ignored_directories(workspace: Path) -> None:
    write(workspace, "src/app.py")
    write(workspace, "src/util.ts")
    write(workspace, "README.md", "# Readme\n")
    write(workspace, "image.png")
    write(workspace, "node_modules/lib/index.js")
    write(workspace, ".git/hooks/pre-commit.py")
    write(workspace, "src/__pycache__/app.cpython-312.py")

    scanner = FileScanner(workspace)

    assert relative_names(scanner) == ["README.md", "src/app.py", "src/util.ts"]


def test_scan_respects_gitignore(workspace: Path) -> None:
    write(workspace, ".gitignore", "generated/\n*.min.js\n")
    write(workspace, "generated/models.py")
    write(workspace, "web/app.min.js")
    write(workspace, "web/app.js")

    assert relative_names(FileScanner(workspace)) == ["web/app.js"]
    assert relative_names(FileScanner(workspace, respect_gitignore=False)) == [
        "generated/models.py",
        "web/app.js",
        "web/app.min.js",
    ]


def test_scan_skips_oversized_files(workspace: Path) -> None:
    write(workspace, "small.py", "x = 1\n")
    write(workspace, "large.py", "x" * 2048)

    assert relative_names(FileScanner(workspace, max_file_size_bytes=1024)) == ["small.py"]


def test_scanner_is_restartable_and_absolute(workspace: Path) -> None:
    write(workspace, "a.py")
    write(workspace, "pkg/b.py")
    scanner = FileScanner(workspace)

    first = list(scanner)
    second = scanner.scan()

    assert first == second
    assert all(path.is_absolute() for path in first)


def test_custom_extension_allow_list(workspace: Path) -> None:
    write(workspace, "a.py")
    write(workspace, "b.go", "package main\n")

    assert relative_names(FileScanner(workspace, extensions=[".GO"])) == ["b.go"]


def test_symlink_leaving_the_workspace_is_skipped(workspace: Path) -> None:
    outside = write(workspace.parent / "outside", "shared.py")
    write(workspace, "a.py")
    (workspace / "link.py").symlink_to(outside)
    (workspace / "alias.py").symlink_to(workspace / "a.py")

    scanner = FileScanner(workspace)

    assert relative_names(scanner) == ["a.py", "alias.py"]
    assert scanner.contains(workspace / "alias.py")
    assert not scanner.contains(workspace / "link.py")


def test_unreadable_directory_is_skipped_with_warning(workspace: Path, monkeypatch) -> None:
    write(workspace, "a.py")
    write(workspace, "locked/hidden.py")
    write(workspace, "open/b.py")
    real_scandir = os.scandir

    def scandir(path):
        if Path(path).name == "locked":
            raise PermissionError(13, "Permission denied", str(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", scandir)
    scanner = FileScanner(workspace)

    assert relative_names(scanner) == ["a.py", "open/b.py"]
    assert len(scanner.warnings) == 1
    assert "locked" in scanner.warnings[0]
