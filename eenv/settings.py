"""
Project settings loading, validation, and normalization.

This module answers one question:
    "Where are the files, and what do they look like?"

Responsibilities:
- Load the optional eenv.yml settings file
- Validate structure and version
- Normalize defaults
- Expose a clean Python representation that every component
  receives explicitly

This module does NOT:
- Walk the filesystem
- Read or write the key config
- Encrypt anything
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List

import yaml

from .config import (
    ARTIFACT_NAME,
    CONFIG_NAME,
    DEFAULT_MAX_DEPTH,
    DEFAULT_SKIP_DIRS,
    EXAMPLE_MARKER,
    GITIGNORE_MARKER,
    GITIGNORE_NAME,
    IGNORE_NAME,
    SECRET_PREFIX,
    SETTINGS_NAME,
    SUPPORTED_SETTINGS_VERSION,
)
from .errors import FilesystemError, SettingsError
from .store import FileStore


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Settings:
    artifact_name: str = ARTIFACT_NAME
    config_name: str = CONFIG_NAME
    gitignore_name: str = GITIGNORE_NAME
    ignore_name: str = IGNORE_NAME
    prefix: str = SECRET_PREFIX
    example_marker: str = EXAMPLE_MARKER
    skip_dirs: FrozenSet[str] = field(default_factory=lambda: frozenset(DEFAULT_SKIP_DIRS))
    max_depth: int = DEFAULT_MAX_DEPTH
    gitignore_marker: str = GITIGNORE_MARKER

    # ------------------------------------------------------------------
    # Loading API
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, store: FileStore, name: str = SETTINGS_NAME) -> "Settings":
        """
        Load settings from the repository root, or defaults if the file
        does not exist.

        Raises:
            SettingsError: if the file is present but invalid
        """

        if not store.exists(name):
            return cls()

        try:
            raw = yaml.safe_load(store.read_text(name)) or {}
        except yaml.YAMLError as e:
            raise SettingsError(f"Error parsing {name}: {e}") from e
        except FilesystemError as e:
            raise SettingsError(str(e)) from e

        if not isinstance(raw, dict):
            raise SettingsError(f"{name} must contain a mapping")

        return cls._from_dict(raw)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Settings":
        version = data.get("version", SUPPORTED_SETTINGS_VERSION)
        if version != SUPPORTED_SETTINGS_VERSION:
            raise SettingsError(f"Unsupported settings version: {version}")

        files = _section(data, "files")
        scan = _section(data, "scan")
        gitignore = _section(data, "gitignore")

        if "skip_dirs" in scan:
            skip_dirs = set(_str_list(scan, "skip_dirs"))
        else:
            skip_dirs = set(DEFAULT_SKIP_DIRS)
        skip_dirs.update(_str_list(scan, "extra_skip_dirs"))

        max_depth = scan.get("max_depth", DEFAULT_MAX_DEPTH)
        if not isinstance(max_depth, int) or isinstance(max_depth, bool) or max_depth < 0:
            raise SettingsError("scan.max_depth must be a non-negative integer")

        return cls(
            artifact_name=_str(files, "artifact", ARTIFACT_NAME),
            config_name=_str(files, "config", CONFIG_NAME),
            gitignore_name=_str(files, "gitignore", GITIGNORE_NAME),
            ignore_name=_str(files, "ignore", IGNORE_NAME),
            prefix=_str(scan, "prefix", SECRET_PREFIX),
            example_marker=_str(scan, "example_marker", EXAMPLE_MARKER),
            skip_dirs=frozenset(skip_dirs),
            max_depth=max_depth,
            gitignore_marker=_str(gitignore, "marker", GITIGNORE_MARKER),
        )


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise SettingsError(f"'{name}' must be a mapping")
    return value


def _str(section: Dict[str, Any], key: str, default: str) -> str:
    value = section.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise SettingsError(f"'{key}' must be a non-empty string")
    return value


def _str_list(section: Dict[str, Any], key: str) -> List[str]:
    value = section.get(key) or []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise SettingsError(f"'{key}' must be a list of strings")
    return value
