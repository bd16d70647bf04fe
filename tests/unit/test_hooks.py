# tests/unit/test_hooks.py: Unit tests for hook installation.

import os

import pytest

from eenv.errors import GitError
from eenv.hooks import HOOK_MARKER, hook_scripts, install_hook, uninstall_hook

FOREIGN = "#!/bin/sh\necho lint\n"


@pytest.fixture
def git_dir(tmp_path, monkeypatch):
    """Pretend tmp_path is a work tree whose hooks live in .git/hooks."""
    monkeypatch.setattr("eenv.hooks.is_work_tree", lambda root: True)
    monkeypatch.setattr("eenv.hooks.hooks_dir", lambda root: root / ".git" / "hooks")
    return tmp_path / ".git" / "hooks"


def test_hook_scripts_call_back_into_package():
    scripts = hook_scripts(python="/usr/bin/python3")

    assert set(scripts) == {"pre-commit", "pre-commit.ps1"}
    for text in scripts.values():
        assert HOOK_MARKER in text
        assert '"/usr/bin/python3" -m eenv pre-commit --write' in text


def test_install_writes_both_hooks(tmp_path, git_dir, settings):
    report = install_hook(tmp_path, settings)

    assert sorted(p.name for p in report.written) == ["pre-commit", "pre-commit.ps1"]
    assert HOOK_MARKER in (git_dir / "pre-commit").read_text()
    if os.name != "nt":
        assert os.access(git_dir / "pre-commit", os.X_OK)
    assert not (tmp_path / ".gitignore").exists()


def test_reinstall_is_a_no_op(tmp_path, git_dir, settings):
    install_hook(tmp_path, settings)
    report = install_hook(tmp_path, settings)

    assert report.written == []
    assert len(report.kept) == 2


def test_foreign_hook_is_kept(tmp_path, git_dir, settings):
    git_dir.mkdir(parents=True)
    (git_dir / "pre-commit").write_text(FOREIGN)

    report = install_hook(tmp_path, settings)

    assert (git_dir / "pre-commit").read_text() == FOREIGN
    assert git_dir / "pre-commit" in report.kept
    assert [p.name for p in report.written] == ["pre-commit.ps1"]


def test_force_backs_up_foreign_hook(tmp_path, git_dir, settings):
    git_dir.mkdir(parents=True)
    (git_dir / "pre-commit").write_text(FOREIGN)

    report = install_hook(tmp_path, settings, force=True)

    assert len(report.backups) == 1
    assert report.backups[0].name.startswith("pre-commit.bak.")
    assert report.backups[0].read_text() == FOREIGN
    assert HOOK_MARKER in (git_dir / "pre-commit").read_text()


def test_install_outside_git_fails(tmp_path, monkeypatch, settings):
    monkeypatch.setattr("eenv.hooks.is_work_tree", lambda root: False)
    with pytest.raises(GitError):
        install_hook(tmp_path, settings)


def test_hooks_inside_work_tree_are_ignored(tmp_path, monkeypatch, settings):
    """Tests that a core.hooksPath inside the tree is kept out of commits."""
    monkeypatch.setattr("eenv.hooks.is_work_tree", lambda root: True)
    monkeypatch.setattr("eenv.hooks.hooks_dir", lambda root: root / ".githooks")

    install_hook(tmp_path, settings)

    ignored = (tmp_path / ".gitignore").read_text().splitlines()
    assert ".githooks/pre-commit" in ignored
    assert ".githooks/pre-commit.ps1" in ignored


def test_uninstall(tmp_path, git_dir, settings):
    install_hook(tmp_path, settings)
    (git_dir / "pre-commit").write_text(FOREIGN)

    report = uninstall_hook(tmp_path)

    assert [p.name for p in report.removed] == ["pre-commit.ps1"]
    assert [p.name for p in report.kept] == ["pre-commit"]

    forced = uninstall_hook(tmp_path, force=True)
    assert [p.name for p in forced.removed] == ["pre-commit"]
    assert not (git_dir / "pre-commit").exists()
