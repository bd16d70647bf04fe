"""
Ignore-file reconciliation.

Makes sure a set of repo-relative paths is listed in .gitignore by
appending one marked block with whatever is missing. Running it again
with the same paths changes nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from .settings import Settings
from .store import FileStore
from .utils import to_posix

logger = logging.getLogger(__name__)


@dataclass
class GitignoreEdit:
    content: str
    added: List[str] = field(default_factory=list)
    path: str = ""

    @property
    def changed(self) -> bool:
        return bool(self.added)


def reconcile(content: str, paths: Iterable[str], marker: str) -> GitignoreEdit:
    """Pure core: compute the new ignore-file text."""
    existing = {line.strip() for line in content.split("\n") if line.strip()}

    missing: List[str] = []
    for path in paths:
        rel = to_posix(path)
        if rel not in existing and rel not in missing:
            missing.append(rel)

    if not missing:
        return GitignoreEdit(content=content)

    block = "\n".join([marker, *missing, "", ""])
    needs_nl = bool(content) and not content.endswith("\n")
    return GitignoreEdit(
        content=content + ("\n" if needs_nl else "") + block,
        added=missing,
    )


def ensure_gitignore(store: FileStore, settings: Settings, paths: Iterable[str]) -> GitignoreEdit:
    """Reconcile the repository's ignore file, writing only on change."""
    name = settings.gitignore_name
    edit = reconcile(store.read_text_or_empty(name), paths, settings.gitignore_marker)
    edit.path = name
    if edit.changed:
        store.write_text(name, edit.content)
        logger.debug("added %d path(s) to %s", len(edit.added), name)
    return edit
