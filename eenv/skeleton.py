"""
Example skeleton derivation.

A skeleton is a value-stripped copy of a secret file that is safe to
commit. It is produced by a purely textual transform (not a parse and
re-serialize) so that comments, ordering and blank lines survive
exactly, and it has the same number of lines as its source.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .envfile import quoted_span
from .errors import FilesystemError
from .settings import Settings
from .store import FileStore

logger = logging.getLogger(__name__)

_COMMENT_LINE = re.compile(r"^\s*#")


class ExampleAction(enum.Enum):
    CREATED = "created"
    OVERWRITTEN = "overwritten"


@dataclass
class ExampleReport:
    actions: Dict[str, ExampleAction] = field(default_factory=dict)

    @property
    def paths(self) -> List[str]:
        return list(self.actions)

    @property
    def count(self) -> int:
        return len(self.actions)


def strip_line(line: str) -> str:
    if not line.strip() or _COMMENT_LINE.match(line):
        return line

    left, sep, right = line.partition("=")
    if not sep:
        return line

    # a " #" inside a quoted value is part of the value
    value = right.lstrip()
    span = quoted_span(value)
    start = len(right) - len(value) + span[1] if span else 0
    hash_pos = right.find(" #", start)
    comment = right[hash_pos:] if hash_pos != -1 else ""
    return f"{left.strip()}={comment}"


def extract_skeleton(text: str) -> str:
    """
    Strip every value from env text, keeping keys and inline comments.

    Line terminators are kept as they are, so the skeleton has as many
    lines as `text` by str.splitlines.
    """
    out = []
    for chunk in text.splitlines(keepends=True):
        body = chunk.splitlines()[0]
        out.append(strip_line(body) + chunk[len(body):])
    return "".join(out)


def example_path_for(path: str, settings: Settings) -> str:
    return f"{path}{settings.example_marker}"


def write_examples(
    store: FileStore, real_paths: Iterable[str], settings: Settings
) -> ExampleReport:
    """(Re)write the example file next to every real file."""
    report = ExampleReport()
    for real in real_paths:
        target = example_path_for(real, settings)
        try:
            skeleton = extract_skeleton(store.read_text(real))
            existed = store.exists(target)
            if not skeleton.endswith("\n"):
                skeleton += "\n"
            store.write_text(target, skeleton)
        except FilesystemError as e:
            logger.warning("could not write example for %s: %s", real, e)
            continue

        report.actions[target] = ExampleAction.OVERWRITTEN if existed else ExampleAction.CREATED
        logger.debug("%s %s", report.actions[target].value, target)
    return report
