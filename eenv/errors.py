"""
Typed exceptions and process exit codes.

Every failure the core can report maps onto one of these classes so the
CLI can translate it into a message and an exit code without inspecting
error strings.

A blocked commit is NOT an error: the pre-commit gate returns it as a
result and the CLI maps it to EXIT_BLOCKED.
"""

from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_OK: Final[int] = 0
EXIT_FAILURE: Final[int] = 1
EXIT_BLOCKED: Final[int] = 3
EXIT_INTERRUPTED: Final[int] = 130


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------


class EenvError(Exception):
    """Base exception for the application."""

    exit_code = EXIT_FAILURE


class ConfigMissing(EenvError):
    """The key config file does not exist."""


class ConfigInvalidDocument(EenvError):
    """The key config file is not a JSON object."""


class KeyMissing(EenvError):
    """No usable key is stored (or an empty key was supplied)."""


class ArtifactMissing(EenvError):
    """The encrypted artifact does not exist."""


class ArtifactInvalidDocument(EenvError):
    """The encrypted artifact is structurally broken."""


class DecryptionAuthFailure(EenvError):
    """Authentication tag mismatch: wrong key or tampered artifact."""


class FilesystemError(EenvError):
    """Permission or I/O failure."""


class SettingsError(EenvError):
    """The eenv.yml settings file is invalid."""


class GitError(EenvError):
    """A git command failed."""


class ParseSkip(EenvError):
    """A malformed env line. Always absorbed by the parser."""

    def __init__(self, lineno: int, reason: str):
        super().__init__(f"line {lineno}: {reason}")
        self.lineno = lineno
        self.reason = reason
