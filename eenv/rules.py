"""
Classification rules.

Given a file name and the project settings, this module decides which
role the file plays:
- REAL: a raw secret file (.env, .env.local, ...)
- EXAMPLE: a value-stripped skeleton (.env.example, ...)
- ARTIFACT: the encrypted envelope (eenv.enc.json)
- CONFIG: the shared key document (eenv.config.json)

It also evaluates .eenvignore patterns, which exclude paths from
discovery.

Rules DO NOT perform actions. They only return decisions. A
classification depends on nothing but the base name.
"""

from __future__ import annotations

import enum
import fnmatch
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Iterable, List, Optional

from .settings import Settings
from .utils import to_posix


class Classification(enum.Enum):
    REAL = "real"
    EXAMPLE = "example"
    ARTIFACT = "artifact"
    CONFIG = "config"


@dataclass(frozen=True)
class ClassifiedPath:
    path: str
    kind: Classification

    @property
    def name(self) -> str:
        return PurePosixPath(self.path).name


def classify(path: str, settings: Settings) -> Optional[Classification]:
    """Classify a path by its base name, or None if eenv does not care about it."""
    name = PurePosixPath(to_posix(path)).name

    if name == settings.artifact_name:
        return Classification.ARTIFACT
    if name == settings.config_name:
        return Classification.CONFIG
    if not name.startswith(settings.prefix):
        return None
    if settings.example_marker in name:
        return Classification.EXAMPLE
    return Classification.REAL


def is_real(path: str, settings: Settings) -> bool:
    return classify(path, settings) is Classification.REAL


# ---------------------------------------------------------------------------
# Ignore files
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IgnorePattern:
    """
    One line of an ignore file, gitignore style.

    `base` is the directory holding the ignore file ("" for the root);
    the pattern only applies below it. A pattern containing a slash is
    matched against the path relative to `base`, any other pattern
    against the base name at any depth. A trailing slash restricts the
    pattern to directories and a leading `!` re-includes. Matching uses
    fnmatch, so `*` also crosses directory separators.
    """

    base: str
    pattern: str
    negated: bool = False
    dir_only: bool = False
    anchored: bool = False

    def matches(self, path: str, is_dir: bool) -> bool:
        if self.dir_only and not is_dir:
            return False

        if self.base:
            if not path.startswith(self.base + "/"):
                return False
            path = path[len(self.base) + 1:]

        if self.anchored:
            return fnmatch.fnmatchcase(path, self.pattern)
        return fnmatch.fnmatchcase(PurePosixPath(path).name, self.pattern)


def parse_ignore_file(text: str, base: str = "") -> List[IgnorePattern]:
    patterns: List[IgnorePattern] = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        negated = line.startswith("!")
        if negated:
            line = line[1:]
        dir_only = line.endswith("/")
        anchored = "/" in line.rstrip("/")
        line = line.strip("/")
        if not line:
            continue

        patterns.append(
            IgnorePattern(
                base=base,
                pattern=line,
                negated=negated,
                dir_only=dir_only,
                anchored=anchored,
            )
        )
    return patterns


def is_ignored(path: str, is_dir: bool, patterns: Iterable[IgnorePattern]) -> bool:
    """The last matching pattern decides."""
    ignored = False
    for pattern in patterns:
        if pattern.matches(path, is_dir):
            ignored = not pattern.negated
    return ignored
