"""
Materialization of a decrypted env map back onto disk.

Existing files are never clobbered unless `force` is set. The existence
check and the write are not one atomic step across processes; a
concurrent writer can still lose an update. That is accepted for a
single-operator local tool.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from .envfile import RepoEnvMap, serialize
from .errors import FilesystemError
from .store import FileStore
from .utils import is_safe_relative, to_posix

logger = logging.getLogger(__name__)


@dataclass
class ApplyReport:
    written_paths: List[str] = field(default_factory=list)
    skipped_paths: List[str] = field(default_factory=list)

    @property
    def written(self) -> int:
        return len(self.written_paths)

    @property
    def skipped(self) -> int:
        return len(self.skipped_paths)


def materialize(store: FileStore, repo_map: RepoEnvMap, force: bool = False) -> ApplyReport:
    """
    Write every env file in `repo_map`.

    Raises:
        FilesystemError: an entry points outside the repository, or a
            write fails
    """

    unsafe = [p for p in repo_map if not is_safe_relative(p)]
    if unsafe:
        raise FilesystemError(f"Refusing to write outside the repository: {', '.join(unsafe)}")

    report = ApplyReport()
    for rel, env_map in repo_map.items():
        rel = to_posix(rel)
        parent = rel.rpartition("/")[0]
        if parent:
            store.make_dirs(parent)

        if store.exists(rel) and not force:
            report.skipped_paths.append(rel)
            logger.debug("skip existing %s", rel)
            continue

        store.write_text(rel, serialize(env_map))
        report.written_paths.append(rel)
    return report
