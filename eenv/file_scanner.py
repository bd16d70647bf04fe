"""
Filesystem scanning and classification.

This module is responsible for:
- walking the repository tree (bounded depth, well-known dirs skipped,
  .eenvignore patterns honoured)
- applying classification rules to every file
- yielding the files eenv cares about, in a deterministic order

This module does NOT:
- parse or rewrite files
- encrypt anything
- load configuration

Discovery is best-effort: unreadable directories are skipped, never
fatal.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Sequence

from .errors import FilesystemError
from .rules import (
    Classification,
    ClassifiedPath,
    IgnorePattern,
    classify,
    is_ignored,
    parse_ignore_file,
)
from .settings import Settings
from .store import FileStore

logger = logging.getLogger(__name__)


class FileInventory:
    def __init__(self, store: FileStore, settings: Settings):
        self.store = store
        self.settings = settings

    def scan(self) -> List[ClassifiedPath]:
        """Return every classified file under the root, in traversal order."""
        return list(self._walk("", 0, ()))

    def split(self) -> Dict[Classification, List[str]]:
        """Group scanned paths by classification."""
        groups: Dict[Classification, List[str]] = {kind: [] for kind in Classification}
        for entry in self.scan():
            groups[entry.kind].append(entry.path)
        return groups

    def real_files(self) -> List[str]:
        return self.split()[Classification.REAL]

    def example_files(self) -> List[str]:
        return self.split()[Classification.EXAMPLE]

    def _walk(
        self, rel: str, depth: int, patterns: Sequence[IgnorePattern]
    ) -> Iterator[ClassifiedPath]:
        if depth > self.settings.max_depth:
            return

        try:
            entries = self.store.list_dir(rel)
        except FilesystemError as e:
            logger.debug("skipping unreadable directory: %s", e)
            return

        if any(e.is_file and e.name == self.settings.ignore_name for e in entries):
            patterns = [*patterns, *self._read_ignore_file(rel)]

        for entry in entries:
            child = f"{rel}/{entry.name}" if rel else entry.name
            if is_ignored(child, entry.is_dir, patterns):
                continue
            if entry.is_dir:
                if entry.name in self.settings.skip_dirs:
                    continue
                yield from self._walk(child, depth + 1, patterns)
            elif entry.is_file:
                kind = classify(child, self.settings)
                if kind is not None:
                    yield ClassifiedPath(path=child, kind=kind)

    def _read_ignore_file(self, rel: str) -> List[IgnorePattern]:
        name = self.settings.ignore_name
        path = f"{rel}/{name}" if rel else name
        try:
            return parse_ignore_file(self.store.read_text(path), base=rel)
        except FilesystemError as e:
            logger.debug("skipping unreadable ignore file: %s", e)
            return []
