"""
Git pre-commit hook installation.

The hook scripts call back into this package (`python -m eenv
pre-commit --write`). Hooks written by eenv carry a marker line; a hook
without it belongs to somebody else and is only replaced or removed
with `force` (replacement keeps a timestamped backup).
"""

from __future__ import annotations

import logging
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .errors import FilesystemError, GitError
from .gitignore import ensure_gitignore
from .gitwrap import hooks_dir, is_work_tree
from .settings import Settings
from .store import LocalFileStore
from .utils import backup_name

logger = logging.getLogger(__name__)

HOOK_MARKER = "# managed-by-eenv"
HOOK_NAMES = ("pre-commit", "pre-commit.ps1")


@dataclass
class HookReport:
    hooks_dir: Path
    written: List[Path] = field(default_factory=list)
    kept: List[Path] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)
    backups: List[Path] = field(default_factory=list)


def hook_scripts(python: str = sys.executable) -> dict:
    return {
        "pre-commit": (
            "#!/usr/bin/env bash\n"
            f"{HOOK_MARKER}\n"
            "set -euo pipefail\n"
            f'exec "{python}" -m eenv pre-commit --write\n'
        ),
        "pre-commit.ps1": (
            f"{HOOK_MARKER}\n"
            '$ErrorActionPreference = "Stop"\n'
            f'& "{python}" -m eenv pre-commit --write\n'
            "exit $LASTEXITCODE\n"
        ),
    }


def install_hook(root: Path, settings: Settings, force: bool = False) -> HookReport:
    """
    Write the pre-commit hooks.

    Raises:
        GitError: `root` is not a git work tree
        FilesystemError: a hook could not be written
    """

    if not is_work_tree(root):
        raise GitError(f"Not a git repository: {root}")

    target_dir = hooks_dir(root)
    report = HookReport(hooks_dir=target_dir)

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        for name, desired in hook_scripts().items():
            _write_hook(target_dir / name, desired, force, report)
        sh = target_dir / "pre-commit"
        if sh.exists():
            sh.chmod(0o755)
    except OSError as e:
        raise FilesystemError(f"Cannot install hook in {target_dir}: {e}") from e

    _ignore_hooks_in_work_tree(root, settings, target_dir)
    return report


def uninstall_hook(root: Path, force: bool = False) -> HookReport:
    """Remove our hooks; with `force`, remove any pre-commit hook."""
    target_dir = hooks_dir(root)
    report = HookReport(hooks_dir=target_dir)

    for name in HOOK_NAMES:
        path = target_dir / name
        if not path.exists():
            continue
        try:
            if force or HOOK_MARKER in path.read_text(encoding="utf-8", errors="replace"):
                path.unlink()
                report.removed.append(path)
            else:
                report.kept.append(path)
        except OSError as e:
            raise FilesystemError(f"Cannot remove {path}: {e}") from e
    return report


def _write_hook(path: Path, desired: str, force: bool, report: HookReport) -> None:
    if path.exists():
        existing = path.read_text(encoding="utf-8", errors="replace")
        ours = HOOK_MARKER in existing
        if not ours and not force:
            logger.info("leaving foreign hook in place: %s", path)
            report.kept.append(path)
            return
        if existing == desired:
            report.kept.append(path)
            return
        if not ours:
            backup = path.with_name(backup_name(path.name))
            shutil.copy2(path, backup)
            report.backups.append(backup)

    path.write_text(desired, encoding="utf-8")
    report.written.append(path)


def _ignore_hooks_in_work_tree(root: Path, settings: Settings, target_dir: Path) -> None:
    """Hooks kept inside the work tree (core.hooksPath) must not be committed."""
    try:
        rel = target_dir.resolve().relative_to(root.resolve())
    except ValueError:
        return
    if rel.parts and rel.parts[0] == ".git":
        return

    paths = [(rel / name).as_posix() for name in HOOK_NAMES]
    try:
        ensure_gitignore(LocalFileStore(root), settings, paths)
    except FilesystemError as e:
        logger.warning("could not add hooks to %s: %s", settings.gitignore_name, e)
