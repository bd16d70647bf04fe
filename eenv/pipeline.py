"""
End-to-end flows: init, update, apply, status.

This module orchestrates the components in a fixed order and reports
what happened. It owns no policy of its own:
- update: inventory -> examples -> parse -> encrypt -> artifact,
  then ignore-file reconciliation (best effort)
- apply:  key -> decrypt artifact -> materialize
- init:   store (or adopt) the key, reconcile the ignore file, write
  examples, and materialize when a key was adopted
- status: what exists in the repository right now
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .apply import ApplyReport, materialize
from .config import (
    Config,
    config_is_valid,
    load_config,
    load_key,
    save_config,
)
from .envelope import decrypt_map, encrypt_map, read_artifact, write_artifact
from .envfile import RepoEnvMap, parse
from .errors import ConfigInvalidDocument, ConfigMissing, FilesystemError, KeyMissing
from .file_scanner import FileInventory
from .gitignore import GitignoreEdit, ensure_gitignore
from .keys import derive_key
from .rules import Classification
from .settings import Settings
from .skeleton import ExampleReport, write_examples
from .store import FileStore
from .utils import backup_name, generate_key

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


@dataclass
class UpdateReport:
    examples: ExampleReport
    artifact: str
    encrypted: List[str] = field(default_factory=list)
    gitignore: Optional[GitignoreEdit] = None
    gitignore_error: Optional[str] = None


@dataclass
class InitReport:
    adopted: bool = False
    key_generated: bool = False
    config_backup: Optional[str] = None
    gitignore: Optional[GitignoreEdit] = None
    gitignore_error: Optional[str] = None
    examples: ExampleReport = field(default_factory=ExampleReport)
    applied: Optional[ApplyReport] = None


@dataclass
class RepoStatus:
    real: List[str]
    examples: List[str]
    artifact: bool
    config_valid: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "real": self.real,
            "examples": self.examples,
            "artifact": self.artifact,
            "config_valid": self.config_valid,
        }


# ---------------------------------------------------------------------------
# Shared steps
# ---------------------------------------------------------------------------


def collect_env_map(store: FileStore, real_paths: List[str]) -> RepoEnvMap:
    """Parse every real file; unreadable ones are logged and left out."""
    repo_map: RepoEnvMap = {}
    for rel in real_paths:
        try:
            repo_map[rel] = parse(store.read_text(rel))
        except FilesystemError as e:
            logger.warning("skipping %s: %s", rel, e)
    return repo_map


def reconcile_ignores(
    store: FileStore,
    settings: Settings,
    real_paths: List[str],
    extra: Optional[List[str]] = None,
) -> tuple:
    """Best-effort ignore-file update. Returns (edit, error message)."""
    paths = [*real_paths, settings.config_name, *(extra or [])]
    try:
        return ensure_gitignore(store, settings, paths), None
    except FilesystemError as e:
        logger.warning("could not update %s: %s", settings.gitignore_name, e)
        return None, str(e)


# ---------------------------------------------------------------------------
# Flows
# ---------------------------------------------------------------------------


def run_update(store: FileStore, settings: Settings) -> UpdateReport:
    """
    Regenerate examples and re-encrypt every real env file.

    Raises:
        ConfigMissing, ConfigInvalidDocument, KeyMissing: no usable key
        FilesystemError: the artifact could not be written
    """

    real = FileInventory(store, settings).real_files()
    logger.debug("found %d real env file(s)", len(real))

    examples = write_examples(store, real, settings)
    repo_map = collect_env_map(store, real)

    key = derive_key(load_key(store, settings))
    artifact = write_artifact(store, settings, encrypt_map(repo_map, key))

    edit, error = reconcile_ignores(store, settings, real)
    return UpdateReport(
        examples=examples,
        artifact=artifact,
        encrypted=list(repo_map),
        gitignore=edit,
        gitignore_error=error,
    )


def run_apply(store: FileStore, settings: Settings, force: bool = False) -> ApplyReport:
    """
    Decrypt the artifact and write the env files it holds.

    Raises:
        ConfigMissing, ConfigInvalidDocument, KeyMissing: no usable key
        ArtifactMissing, ArtifactInvalidDocument: no usable artifact
        DecryptionAuthFailure: wrong key or tampered artifact
    """

    key = derive_key(load_key(store, settings))
    repo_map = decrypt_map(read_artifact(store, settings), key)
    return materialize(store, repo_map, force=force)


def needs_key_adoption(store: FileStore, settings: Settings) -> bool:
    """True when an artifact exists but no usable key is stored."""
    return store.exists(settings.artifact_name) and not config_is_valid(store, settings)


def run_init(store: FileStore, settings: Settings, key: Optional[str] = None) -> InitReport:
    """
    Set up the key and the committed companions of every env file.

    When an artifact exists, a supplied key must decrypt it before it is
    stored; if no key was stored yet (adoption) the artifact is applied
    as well.

    Raises:
        KeyMissing: adoption requested without a key
        DecryptionAuthFailure: the supplied key does not open the artifact
    """

    report = InitReport()
    supplied = (key or "").strip()
    adopting = needs_key_adoption(store, settings)

    if adopting and not supplied:
        raise KeyMissing(
            f"Found {settings.artifact_name} but no stored key. Enter the shared key."
        )

    repo_map: Optional[RepoEnvMap] = None
    if supplied and store.exists(settings.artifact_name):
        repo_map = decrypt_map(read_artifact(store, settings), derive_key(supplied))

    existing, report.config_backup = _load_or_backup_config(store, settings)

    if supplied:
        existing.key = supplied
    elif not existing.has_key:
        existing.key = generate_key()
        report.key_generated = True
    save_config(store, settings, existing)

    if adopting:
        report.adopted = True
        report.applied = materialize(store, repo_map or {}, force=False)

    real = FileInventory(store, settings).real_files()
    extra = [report.config_backup] if report.config_backup else []
    report.gitignore, report.gitignore_error = reconcile_ignores(store, settings, real, extra)
    report.examples = write_examples(store, real, settings)
    return report


def repo_status(store: FileStore, settings: Settings) -> RepoStatus:
    groups = FileInventory(store, settings).split()
    return RepoStatus(
        real=groups[Classification.REAL],
        examples=groups[Classification.EXAMPLE],
        artifact=store.exists(settings.artifact_name),
        config_valid=config_is_valid(store, settings),
    )


def _load_or_backup_config(store: FileStore, settings: Settings) -> tuple:
    """Existing config document, or a fresh one (backing up an unparsable file)."""
    try:
        return load_config(store, settings), None
    except ConfigMissing:
        return Config(), None
    except ConfigInvalidDocument as e:
        backup = backup_name(settings.config_name)
        store.write_text(backup, store.read_text(settings.config_name), private=True)
        logger.warning("%s; previous content saved to %s", e, backup)
        return Config(), backup
