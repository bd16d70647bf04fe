"""
Key derivation: stored key string -> 32-byte AES key.

The key string is interpreted by an ordered list of named strategies;
the first one producing a structurally valid byte sequence wins:

1. base64url  (the format `eenv init` generates)
2. base64     (standard alphabet)
3. sha256     (SHA-256 of the UTF-8 string; always succeeds)

A decoded sequence that is not exactly 32 bytes is replaced by its
SHA-256 digest. Encryption and decryption share this single rule.

The derived key must never be logged or persisted.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Callable, List, NamedTuple, Optional, Tuple

from .config import AES_KEY_SIZE
from .errors import KeyMissing
from .utils import stable_hash

_B64URL_CHARS = re.compile(r"^[A-Za-z0-9_-]+={0,2}$")
_B64STD_CHARS = re.compile(r"^[A-Za-z0-9+/]+={0,2}$")


class KeyStrategy(NamedTuple):
    name: str
    decode: Callable[[str], Optional[bytes]]


def _b64_decoder(pattern: "re.Pattern[str]", altchars: Optional[bytes]) -> Callable[[str], Optional[bytes]]:
    def decode(key: str) -> Optional[bytes]:
        if not pattern.match(key):
            return None
        body = key.rstrip("=")
        if len(body) % 4 == 1:
            return None
        try:
            raw = base64.b64decode(body + "=" * (-len(body) % 4), altchars=altchars, validate=True)
        except (binascii.Error, ValueError):
            return None
        return raw or None

    return decode


def _hash_utf8(key: str) -> bytes:
    return stable_hash(key.encode("utf-8"))


STRATEGIES: List[KeyStrategy] = [
    KeyStrategy("base64url", _b64_decoder(_B64URL_CHARS, b"-_")),
    KeyStrategy("base64", _b64_decoder(_B64STD_CHARS, None)),
    KeyStrategy("sha256", _hash_utf8),
]


def normalize_key(raw: bytes) -> bytes:
    """Anything that is not exactly 32 bytes is hashed down to 32 bytes."""
    if len(raw) == AES_KEY_SIZE:
        return raw
    return stable_hash(raw)


def _interpret(key_string: str) -> Tuple[str, bytes]:
    key = (key_string or "").strip()
    if not key:
        raise KeyMissing("Empty key")

    for strategy in STRATEGIES:
        raw = strategy.decode(key)
        if raw is not None:
            return strategy.name, raw

    # sha256 never declines
    raise AssertionError("unreachable")


def derive_key(key_string: str) -> bytes:
    """
    Derive the 32-byte symmetric key.

    Raises:
        KeyMissing: if the key string is empty or blank
    """

    _, raw = _interpret(key_string)
    return normalize_key(raw)


def describe_key(key_string: str) -> str:
    """Name of the strategy that interprets `key_string`. Safe to show."""
    return _interpret(key_string)[0]
