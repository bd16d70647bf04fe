# tests/unit/test_gitwrap.py: Unit tests for the git subprocess wrapper.

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from eenv.errors import GitError
from eenv.gitwrap import git_add, hooks_dir, is_work_tree, run_git, staged_files


def _done(stdout: str = "", returncode: int = 0) -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=["git"], returncode=returncode, stdout=stdout, stderr="")


def test_run_git_disables_prompts(tmp_path):
    with patch("eenv.gitwrap.subprocess.run", return_value=_done()) as run:
        run_git(["status"], cwd=tmp_path)

    args, kwargs = run.call_args
    assert args[0] == ["git", "status"]
    assert kwargs["cwd"] == tmp_path
    assert kwargs["env"]["GIT_TERMINAL_PROMPT"] == "0"


def test_staged_files_splits_nul_separated_output(tmp_path):
    with patch("eenv.gitwrap.subprocess.run", return_value=_done(".env\0api/my file.txt\0")) as run:
        assert staged_files(tmp_path) == [".env", "api/my file.txt"]

    assert "-z" in run.call_args[0][0]
    assert "--diff-filter=d" in run.call_args[0][0]


def test_git_add(tmp_path):
    with patch("eenv.gitwrap.subprocess.run", return_value=_done()) as run:
        git_add(tmp_path, [])
        run.assert_not_called()

        git_add(tmp_path, ["eenv.enc.json", ".env.example"])
        assert run.call_args[0][0] == ["git", "add", "--", "eenv.enc.json", ".env.example"]

        git_add(tmp_path, [".env.example"], force=True)
        assert run.call_args[0][0] == ["git", "add", "-f", "--", ".env.example"]


@pytest.mark.parametrize(
    "error",
    [
        FileNotFoundError(),
        subprocess.CalledProcessError(128, ["git"], output="", stderr="fatal: not a git repository"),
        subprocess.TimeoutExpired(["git"], 60),
    ],
)
def test_failures_become_git_errors(tmp_path, error):
    with patch("eenv.gitwrap.subprocess.run", side_effect=error):
        with pytest.raises(GitError):
            run_git(["status"], cwd=tmp_path)


def test_called_process_error_message(tmp_path):
    error = subprocess.CalledProcessError(128, ["git"], output="", stderr="fatal: bad\n")
    with patch("eenv.gitwrap.subprocess.run", side_effect=error):
        with pytest.raises(GitError, match="fatal: bad"):
            run_git(["diff"], cwd=tmp_path)


def test_is_work_tree(tmp_path):
    with patch("eenv.gitwrap.subprocess.run", return_value=_done("true\n")):
        assert is_work_tree(tmp_path)
    with patch("eenv.gitwrap.subprocess.run", return_value=_done("", returncode=128)):
        assert not is_work_tree(tmp_path)


def test_hooks_dir_relative_and_absolute(tmp_path):
    with patch("eenv.gitwrap.subprocess.run", return_value=_done(".git/hooks\n")):
        assert hooks_dir(tmp_path) == tmp_path / ".git" / "hooks"

    absolute = str(tmp_path / "shared-hooks")
    with patch("eenv.gitwrap.subprocess.run", return_value=_done(absolute + "\n")):
        assert hooks_dir(tmp_path) == Path(absolute)
