"""
File-store capability.

Every component reads and writes repository files through a FileStore
addressed by repo-relative POSIX paths ("" is the repository root).
This keeps the core testable without a real filesystem.

Implementations:
- LocalFileStore: rooted at a directory on disk, atomic single-file writes
- MemoryFileStore: dict-backed, used by tests and dry runs

This module does NOT:
- classify files
- know anything about env syntax or encryption
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Set

from .errors import FilesystemError
from .utils import to_posix

logger = logging.getLogger(__name__)

PRIVATE_MODE = 0o600
DEFAULT_MODE = 0o644


class DirEntry(NamedTuple):
    name: str
    is_dir: bool
    is_file: bool


class FileStore(ABC):
    """Abstract base class for repository file access."""

    @abstractmethod
    def read_text(self, rel: str) -> str:
        """Return the file's text. Raises FilesystemError if unreadable."""

    @abstractmethod
    def write_text(self, rel: str, text: str, private: bool = False) -> None:
        """
        Replace the file's content in one step, creating parents as needed.

        With `private`, the file ends up readable and writable by its
        owner only.
        """

    @abstractmethod
    def exists(self, rel: str) -> bool:
        pass

    @abstractmethod
    def make_dirs(self, rel: str) -> None:
        pass

    @abstractmethod
    def list_dir(self, rel: str) -> List[DirEntry]:
        """Entries of a directory sorted by name. Raises FilesystemError."""

    def read_text_or_empty(self, rel: str) -> str:
        return self.read_text(rel) if self.exists(rel) else ""


def _norm(rel: str) -> str:
    rel = to_posix(rel) if rel else ""
    if rel == ".":
        return ""
    return rel.strip("/")


# ---------------------------------------------------------------------------
# Local disk
# ---------------------------------------------------------------------------


class LocalFileStore(FileStore):
    def __init__(self, root: str | Path):
        self.root = Path(root)

    def path(self, rel: str) -> Path:
        rel = _norm(rel)
        return self.root / rel if rel else self.root

    def read_text(self, rel: str) -> str:
        try:
            with self.path(rel).open("r", encoding="utf-8", newline="") as fh:
                return fh.read()
        except (OSError, UnicodeDecodeError) as e:
            raise FilesystemError(f"Cannot read {rel}: {e}") from e

    def write_text(self, rel: str, text: str, private: bool = False) -> None:
        target = self.path(rel)
        # temp name stays outside the secret prefix
        tmp = target.with_name(f".~{target.name}.tmp")
        mode = PRIVATE_MODE if private else DEFAULT_MODE
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
                fh.write(text)
            if private:
                # umask cannot widen it, but a pre-existing tmp file could
                os.chmod(tmp, PRIVATE_MODE)
            os.replace(tmp, target)
        except OSError as e:
            if tmp.exists():
                tmp.unlink()
            raise FilesystemError(f"Cannot write {rel}: {e}") from e
        logger.debug("wrote %s (%d bytes)", rel, len(text))

    def exists(self, rel: str) -> bool:
        return self.path(rel).exists()

    def make_dirs(self, rel: str) -> None:
        try:
            self.path(rel).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Cannot create directory {rel}: {e}") from e

    def list_dir(self, rel: str) -> List[DirEntry]:
        try:
            with os.scandir(self.path(rel)) as it:
                entries = [
                    DirEntry(
                        name=e.name,
                        is_dir=e.is_dir(follow_symlinks=False),
                        is_file=e.is_file(follow_symlinks=False),
                    )
                    for e in it
                ]
        except OSError as e:
            raise FilesystemError(f"Cannot list {rel or '.'}: {e}") from e
        return sorted(entries, key=lambda e: e.name)


# ---------------------------------------------------------------------------
# In memory
# ---------------------------------------------------------------------------


class MemoryFileStore(FileStore):
    """
    Dict-backed store.

    `unreadable` holds directory paths whose listing fails, to mimic
    permission errors.
    """

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self.files: Dict[str, str] = {}
        self.modes: Dict[str, int] = {}
        self.dirs: Set[str] = set()
        self.unreadable: Set[str] = set()
        for rel, text in (files or {}).items():
            self.write_text(rel, text)

    def read_text(self, rel: str) -> str:
        try:
            return self.files[_norm(rel)]
        except KeyError:
            raise FilesystemError(f"Cannot read {rel}: no such file")

    def write_text(self, rel: str, text: str, private: bool = False) -> None:
        rel = _norm(rel)
        if rel in self.dirs:
            raise FilesystemError(f"Cannot write {rel}: is a directory")
        parent = rel.rpartition("/")[0]
        if parent:
            self.make_dirs(parent)
        self.files[rel] = text
        self.modes[rel] = PRIVATE_MODE if private else DEFAULT_MODE

    def exists(self, rel: str) -> bool:
        rel = _norm(rel)
        return rel == "" or rel in self.files or rel in self.dirs

    def make_dirs(self, rel: str) -> None:
        parts = _norm(rel).split("/")
        for i in range(1, len(parts) + 1):
            prefix = "/".join(parts[:i])
            if prefix in self.files:
                raise FilesystemError(f"Cannot create directory {rel}: {prefix} is a file")
            if prefix:
                self.dirs.add(prefix)

    def list_dir(self, rel: str) -> List[DirEntry]:
        rel = _norm(rel)
        if rel in self.unreadable or not (rel == "" or rel in self.dirs):
            raise FilesystemError(f"Cannot list {rel or '.'}")

        prefix = f"{rel}/" if rel else ""
        names: Dict[str, bool] = {}
        for path in list(self.files) + list(self.dirs):
            if not path.startswith(prefix):
                continue
            head, sep, _ = path[len(prefix):].partition("/")
            if head:
                names[head] = names.get(head, False) or bool(sep) or (prefix + head) in self.dirs

        return [
            DirEntry(name=name, is_dir=is_dir, is_file=not is_dir)
            for name, is_dir in sorted(names.items())
        ]
