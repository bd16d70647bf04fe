"""
Shared utility helpers.

This module contains small, reusable helpers that do not belong
to business logic, classification, or encryption orchestration.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
import time
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Union


# ---------------------------------------------------------------------------
# Hashing / identifiers
# ---------------------------------------------------------------------------


def stable_hash(data: bytes) -> bytes:
    """Return a stable SHA-256 hash of arbitrary bytes."""
    return hashlib.sha256(data).digest()


def generate_key() -> str:
    """Generate a fresh 32-byte key, URL-safe base64 encoded."""
    return b64url_encode(secrets.token_bytes(32))


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------


def b64url_encode(data: bytes) -> str:
    """URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(text: str) -> bytes:
    """Decode URL-safe base64, padded or not."""
    stripped = text.rstrip("=")
    return base64.urlsafe_b64decode(stripped + "=" * (-len(stripped) % 4))


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. 2024-01-01T00:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def to_posix(path: Union[str, Path]) -> str:
    """Normalize a relative path to forward-slash form on every platform."""
    return PureWindowsPath(str(path)).as_posix()


def is_safe_relative(path: str) -> bool:
    """True if `path` is relative and stays inside its root."""
    if not path:
        return False
    posix = to_posix(path)
    if posix.startswith("/") or PureWindowsPath(path).drive:
        return False
    return ".." not in PurePosixPath(posix).parts


def find_repo_root(start: Union[str, Path]) -> Path:
    """
    Return the nearest ancestor of `start` that holds a `.git` entry.

    Falls back to `start` itself when no repository is found.
    """
    start = Path(start).resolve()
    for candidate in (start, *start.parents):
        if (candidate / ".git").exists():
            return candidate
    return start


def backup_name(name: str) -> str:
    """`name` with a `.bak.<unix-ts>` suffix."""
    return f"{name}.bak.{int(time.time())}"
