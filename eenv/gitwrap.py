"""
Thin subprocess wrappers around git.

Only what the gate and the hook installer need: the staged path set,
re-staging produced files, and locating the hooks directory.
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Iterable, List, Optional

from .errors import GitError


def run_git(
    args: List[str],
    cwd: Path,
    timeout: int = 60,
    check: bool = True,
    env: Optional[dict] = None,
) -> subprocess.CompletedProcess:
    """
    Run a git command in `cwd`.

    Raises:
        GitError: git is missing, the command fails, or it times out
    """

    base_env = os.environ.copy()
    base_env["GIT_TERMINAL_PROMPT"] = "0"
    if env:
        base_env.update(env)

    try:
        return subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=check,
            env=base_env,
        )
    except FileNotFoundError:
        raise GitError("The 'git' command was not found. Is it installed and in your PATH?")
    except subprocess.CalledProcessError as e:
        message = (e.stderr or "").strip() or (e.stdout or "").strip()
        raise GitError(f"git {' '.join(args)} failed: {message}")
    except subprocess.TimeoutExpired:
        raise GitError(f"git {' '.join(args)} timed out after {timeout} seconds")


def staged_files(root: Path) -> List[str]:
    """Repo-relative paths the next commit adds or changes (deletions excluded)."""
    result = run_git(["diff", "--cached", "--name-only", "--diff-filter=d", "-z"], cwd=root)
    return [name for name in result.stdout.split("\0") if name]


def git_add(root: Path, paths: Iterable[str], force: bool = False) -> None:
    """Stage `paths`; `force` stages them even when an ignore rule matches."""
    paths = list(paths)
    if paths:
        run_git(["add", *(["-f"] if force else []), "--", *paths], cwd=root)


def is_work_tree(root: Path) -> bool:
    result = run_git(["rev-parse", "--is-inside-work-tree"], cwd=root, check=False)
    return result.returncode == 0 and result.stdout.strip() == "true"


def hooks_dir(root: Path) -> Path:
    """Directory git runs hooks from (honours core.hooksPath)."""
    result = run_git(["rev-parse", "--git-path", "hooks"], cwd=root)
    path = Path(result.stdout.strip())
    return path if path.is_absolute() else root / path
