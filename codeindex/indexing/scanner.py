# Path: codeindex/indexing/scanner.py
# Purpose: Walk a workspace and collect the source files worth indexing.
# Layer: codeindex/indexing.
# Details: Deterministic order; skips ignored directories, .gitignore matches, and oversized files.

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

import pathspec

from codeindex.constants import MAX_FILE_SIZE_BYTES
from codeindex.parsing.languages import SUPPORTED_EXTENSIONS

logger = logging.getLogger(__name__)

DEFAULT_IGNORE_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        "node_modules",
        "__pycache__",
        ".venv",
        "venv",
        ".tox",
        ".mypy_cache",
        ".pytest_cache",
        "dist",
        "build",
        ".idea",
        ".vscode",
    }
)


class FileScanner:
    """Scan a workspace root for files with supported extensions.

    Iterating the scanner restarts the walk, so one instance can be reused across runs.
    """

    def __init__(
        self,
        root: Path,
        extensions: Optional[Iterable[str]] = None,
        ignore_dirs: Optional[Iterable[str]] = None,
        max_file_size_bytes: int = MAX_FILE_SIZE_BYTES,
        respect_gitignore: bool = True,
    ) -> None:
        self.root = Path(root).resolve()
        self.extensions = frozenset(ext.lower() for ext in (extensions or SUPPORTED_EXTENSIONS))
        self.ignore_dirs = frozenset(ignore_dirs) if ignore_dirs is not None else DEFAULT_IGNORE_DIRS
        self.max_file_size_bytes = max_file_size_bytes
        self.respect_gitignore = respect_gitignore
        self.warnings: List[str] = []

    def __iter__(self) -> Iterator[Path]:
        return self.iter_files()

    def scan(self) -> List[Path]:
        """Return every indexable file under the root."""

        return list(self.iter_files())

    def iter_files(self) -> Iterator[Path]:
        """Yield absolute paths of indexable files, sorted within each directory."""

        self.warnings = []
        spec = self._load_gitignore() if self.respect_gitignore else None
        pending = [self.root]
        while pending:
            directory = pending.pop()
            try:
                with os.scandir(directory) as entries:
                    children = sorted(entries, key=lambda entry: entry.name)
            except OSError as exc:
                self._warn(f"Skipping unreadable directory {directory}: {exc}")
                continue

            subdirs: List[Path] = []
            for entry in children:
                path = Path(entry.path)
                relative = path.relative_to(self.root).as_posix()
                try:
                    if entry.is_dir(follow_symlinks=False):
                        if entry.name in self.ignore_dirs:
                            continue
                        if spec is not None and spec.match_file(relative + "/"):
                            continue
                        subdirs.append(path)
                        continue
                    if not entry.is_file():
                        continue
                    if entry.is_symlink() and not self.contains(path):
                        logger.debug("Skipping %s (links outside the workspace)", relative)
                        continue
                    if path.suffix.lower() not in self.extensions:
                        continue
                    if spec is not None and spec.match_file(relative):
                        continue
                    size = entry.stat().st_size
                except OSError as exc:
                    self._warn(f"Skipping {path}: {exc}")
                    continue
                if size > self.max_file_size_bytes:
                    logger.debug("Skipping %s (%d bytes exceeds limit)", relative, size)
                    continue
                yield path
            # Reverse so the stack pops subdirectories in sorted order.
            pending.extend(reversed(subdirs))

    def relative(self, path: Path) -> str:
        """Workspace-relative POSIX path recorded in the manifest and payloads.

        Symlinks are not followed, so a link is recorded under its own name.
        Raises ValueError for paths outside the root.
        """

        return Path(os.path.abspath(path)).relative_to(self.root).as_posix()

    def contains(self, path: Path) -> bool:
        """Whether ``path``, with symlinks followed, lies inside the root."""

        try:
            Path(path).resolve().relative_to(self.root)
        except ValueError:
            return False
        return True

    def _load_gitignore(self) -> Optional[pathspec.PathSpec]:
        gitignore_path = self.root / ".gitignore"
        if not gitignore_path.is_file():
            return None
        try:
            patterns = gitignore_path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            self._warn(f"Ignoring unreadable .gitignore: {exc}")
            return None
        return pathspec.GitIgnoreSpec.from_lines(patterns)

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)
