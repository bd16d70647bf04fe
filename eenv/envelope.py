"""
Authenticated encryption of a whole repository env map.

The full RepoEnvMap is serialized to canonical JSON and sealed in one
shot with AES-256-GCM. The result is an Envelope: a small JSON document
holding the algorithm name, nonce, tag, ciphertext and creation time.

Decryption fails closed: any tag mismatch raises DecryptionAuthFailure
and no plaintext (partial or otherwise) is ever returned.

This module is intentionally dumb about where the key comes from and
where the artifact lives on disk beyond the store it is handed.
"""

from __future__ import annotations

import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict

from Crypto.Cipher import AES
from Crypto.Random import get_random_bytes

from .config import AES_ALGORITHM, AES_KEY_SIZE, AES_NONCE_SIZE, AES_TAG_SIZE
from .envfile import RepoEnvMap
from .errors import ArtifactInvalidDocument, ArtifactMissing, DecryptionAuthFailure
from .settings import Settings
from .store import FileStore
from .utils import b64url_decode, b64url_encode, utc_timestamp

logger = logging.getLogger(__name__)

_FIELDS = ("alg", "iv", "tag", "data", "createdAt")


@dataclass(frozen=True)
class Envelope:
    alg: str
    nonce: bytes
    tag: bytes
    ciphertext: bytes
    created_at: str

    # ------------------------------------------------------------------
    # Document format
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, str]:
        return {
            "alg": self.alg,
            "iv": b64url_encode(self.nonce),
            "tag": b64url_encode(self.tag),
            "data": b64url_encode(self.ciphertext),
            "createdAt": self.created_at,
        }

    def dumps(self) -> str:
        return json.dumps(self.to_dict(), indent=2) + "\n"

    @classmethod
    def from_dict(cls, doc: Any) -> "Envelope":
        if not isinstance(doc, dict):
            raise ArtifactInvalidDocument("Artifact must be a JSON object")

        for name in _FIELDS:
            if not isinstance(doc.get(name), str):
                raise ArtifactInvalidDocument(f"Artifact field '{name}' is missing or not a string")

        if doc["alg"] != AES_ALGORITHM:
            raise ArtifactInvalidDocument(f"Unsupported algorithm: {doc['alg']}")

        try:
            nonce = b64url_decode(doc["iv"])
            tag = b64url_decode(doc["tag"])
            ciphertext = b64url_decode(doc["data"])
        except (binascii.Error, ValueError) as e:
            raise ArtifactInvalidDocument(f"Artifact contains invalid base64: {e}") from e

        if len(nonce) != AES_NONCE_SIZE:
            raise ArtifactInvalidDocument(f"Nonce must be {AES_NONCE_SIZE} bytes")
        if len(tag) != AES_TAG_SIZE:
            raise ArtifactInvalidDocument(f"Tag must be {AES_TAG_SIZE} bytes")

        return cls(
            alg=doc["alg"],
            nonce=nonce,
            tag=tag,
            ciphertext=ciphertext,
            created_at=doc["createdAt"],
        )

    @classmethod
    def loads(cls, text: str) -> "Envelope":
        try:
            doc = json.loads(text)
        except json.JSONDecodeError as e:
            raise ArtifactInvalidDocument(f"Artifact is not valid JSON: {e}") from e
        return cls.from_dict(doc)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def canonical_json(repo_map: RepoEnvMap) -> bytes:
    return json.dumps(repo_map, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def encrypt_map(repo_map: RepoEnvMap, key: bytes) -> Envelope:
    """Seal a RepoEnvMap under a fresh random nonce."""
    _check_key(key)

    nonce = get_random_bytes(AES_NONCE_SIZE)
    cipher = AES.new(key, AES.MODE_GCM, nonce=nonce, mac_len=AES_TAG_SIZE)
    ciphertext, tag = cipher.encrypt_and_digest(canonical_json(repo_map))

    logger.debug("encrypted %d file(s) into %d bytes", len(repo_map), len(ciphertext))
    return Envelope(
        alg=AES_ALGORITHM,
        nonce=nonce,
        tag=tag,
        ciphertext=ciphertext,
        created_at=utc_timestamp(),
    )


def decrypt_map(envelope: Envelope, key: bytes) -> RepoEnvMap:
    """
    Open an Envelope.

    Raises:
        DecryptionAuthFailure: wrong key, or tampered ciphertext/tag
        ArtifactInvalidDocument: the authenticated payload is not a RepoEnvMap
    """

    _check_key(key)

    cipher = AES.new(key, AES.MODE_GCM, nonce=envelope.nonce, mac_len=AES_TAG_SIZE)
    try:
        plaintext = cipher.decrypt_and_verify(envelope.ciphertext, envelope.tag)
    except ValueError:
        raise DecryptionAuthFailure(
            "Could not decrypt the artifact: wrong key or tampered content"
        ) from None

    try:
        doc = json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ArtifactInvalidDocument(f"Decrypted payload is not valid JSON: {e}") from e

    return _validate_repo_map(doc)


def read_artifact(store: FileStore, settings: Settings) -> Envelope:
    name = settings.artifact_name
    if not store.exists(name):
        raise ArtifactMissing(f'Missing {name}. Run "eenv update" to generate it.')
    return Envelope.loads(store.read_text(name))


def write_artifact(store: FileStore, settings: Settings, envelope: Envelope) -> str:
    store.write_text(settings.artifact_name, envelope.dumps())
    return settings.artifact_name


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _check_key(key: bytes) -> None:
    if len(key) != AES_KEY_SIZE:
        raise ValueError(f"Derived key must be {AES_KEY_SIZE} bytes")


def _validate_repo_map(doc: Any) -> RepoEnvMap:
    if not isinstance(doc, dict):
        raise ArtifactInvalidDocument("Decrypted payload must be a mapping of paths")

    for path, env_map in doc.items():
        if not isinstance(env_map, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in env_map.items()
        ):
            raise ArtifactInvalidDocument(f"Entry for {path} must map strings to strings")
    return doc
