"""
Commit-time gate.

The gate looks at the set of staged paths (supplied by the git layer)
and refuses the commit when a raw secret file is among them. With
`write`, it also refreshes examples, the ignore file and the encrypted
artifact, and reports which of those paths should be staged again.

State machine:

    INSPECTING --WRITE_REQUESTED--> WRITE_MODE
    INSPECTING --INDEX_CLEAN------> CLEAN
    INSPECTING --SECRETS_STAGED---> BLOCKED
    WRITE_MODE --INDEX_CLEAN------> CLEAN
    WRITE_MODE --SECRETS_STAGED---> BLOCKED

CLEAN and BLOCKED are terminal. The gate never touches staged content
and never stages a real secret file.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .config import ConfigStatus, ensure_config
from .errors import EXIT_BLOCKED, EXIT_OK
from .file_scanner import FileInventory
from .pipeline import UpdateReport, run_update
from .rules import is_real
from .settings import Settings
from .store import FileStore
from .utils import to_posix

logger = logging.getLogger(__name__)


class GateState(enum.Enum):
    INSPECTING = "inspecting"
    WRITE_MODE = "write-mode"
    CLEAN = "clean"
    BLOCKED = "blocked"


class GateEvent(enum.Enum):
    WRITE_REQUESTED = "write-requested"
    INDEX_CLEAN = "index-clean"
    SECRETS_STAGED = "secrets-staged"


TRANSITIONS: Dict[Tuple[GateState, GateEvent], GateState] = {
    (GateState.INSPECTING, GateEvent.WRITE_REQUESTED): GateState.WRITE_MODE,
    (GateState.INSPECTING, GateEvent.INDEX_CLEAN): GateState.CLEAN,
    (GateState.INSPECTING, GateEvent.SECRETS_STAGED): GateState.BLOCKED,
    (GateState.WRITE_MODE, GateEvent.INDEX_CLEAN): GateState.CLEAN,
    (GateState.WRITE_MODE, GateEvent.SECRETS_STAGED): GateState.BLOCKED,
}


def transition(state: GateState, event: GateEvent) -> GateState:
    try:
        return TRANSITIONS[(state, event)]
    except KeyError:
        raise ValueError(f"No transition from {state.value} on {event.value}") from None


@dataclass
class GateResult:
    state: GateState
    offenders: List[str] = field(default_factory=list)
    restage: List[str] = field(default_factory=list)
    update: Optional[UpdateReport] = None
    config_status: Optional[ConfigStatus] = None

    @property
    def allowed(self) -> bool:
        return self.state is GateState.CLEAN

    @property
    def exit_code(self) -> int:
        return EXIT_OK if self.allowed else EXIT_BLOCKED

    @property
    def message(self) -> str:
        if self.allowed:
            return "No raw env files staged."
        lines = ["Refusing to commit raw env files:"]
        lines += [f"  - {path}" for path in self.offenders]
        lines.append(
            "Remove them from the index (git rm --cached <file>) and commit "
            "the encrypted artifact and .example files instead."
        )
        return "\n".join(lines)


def find_offenders(staged_paths: Iterable[str], settings: Settings) -> List[str]:
    return [to_posix(p) for p in staged_paths if is_real(p, settings)]


def run_gate(
    store: FileStore,
    settings: Settings,
    staged_paths: Iterable[str],
    write: bool = False,
) -> GateResult:
    """
    Decide whether the staged set may be committed.

    In write mode the update pipeline runs first whenever the working
    tree holds real env files; its errors propagate.
    """

    state = GateState.INSPECTING
    result = GateResult(state=state)

    if write:
        state = result.state = transition(state, GateEvent.WRITE_REQUESTED)
        _regenerate(store, settings, result)

    result.offenders = find_offenders(staged_paths, settings)
    event = GateEvent.SECRETS_STAGED if result.offenders else GateEvent.INDEX_CLEAN
    result.state = transition(state, event)

    logger.debug("gate %s (%d offender(s))", result.state.value, len(result.offenders))
    return result


def _regenerate(store: FileStore, settings: Settings, result: GateResult) -> None:
    if not FileInventory(store, settings).real_files():
        logger.debug("no real env files, nothing to regenerate")
        return

    result.config_status = ensure_config(store, settings)
    report = run_update(store, settings)
    result.update = report

    restage = [*report.examples.paths, report.artifact]
    if report.gitignore is not None and report.gitignore.changed:
        restage.append(report.gitignore.path)
    result.restage = [p for p in restage if not is_real(p, settings)]
