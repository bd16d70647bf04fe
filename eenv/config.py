"""
Global configuration and key handling.

This module is responsible for:
- Defining global constants and defaults
- Loading and saving the shared key document (eenv.config.json)
- Providing the normalized, ready-to-use encryption key

The key document is the single root of trust: losing it makes the
encrypted artifact permanently unrecoverable. It is always written
owner-only and never copied anywhere else.

If something here changes, the *entire tool* behavior changes.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Final, FrozenSet, Optional

from .errors import ConfigInvalidDocument, ConfigMissing, KeyMissing
from .utils import generate_key

if TYPE_CHECKING:
    from .settings import Settings
    from .store import FileStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tool / format versioning
# ---------------------------------------------------------------------------

SUPPORTED_SETTINGS_VERSION: Final[int] = 1
TOOL_VERSION: Final[str] = "0.1.0"

# ---------------------------------------------------------------------------
# Well-known file names
# ---------------------------------------------------------------------------

SETTINGS_NAME: Final[str] = "eenv.yml"
CONFIG_NAME: Final[str] = "eenv.config.json"
ARTIFACT_NAME: Final[str] = "eenv.enc.json"
GITIGNORE_NAME: Final[str] = ".gitignore"
IGNORE_NAME: Final[str] = ".eenvignore"

# ---------------------------------------------------------------------------
# Discovery defaults
# ---------------------------------------------------------------------------

SECRET_PREFIX: Final[str] = ".env"
EXAMPLE_MARKER: Final[str] = ".example"
DEFAULT_MAX_DEPTH: Final[int] = 8
DEFAULT_SKIP_DIRS: Final[FrozenSet[str]] = frozenset(
    {
        "node_modules",
        ".git",
        "dist",
        "build",
        ".next",
        ".turbo",
        ".output",
        "out",
        ".cache",
    }
)
GITIGNORE_MARKER: Final[str] = "# Added by eenv"

# AES-GCM defaults
AES_ALGORITHM: Final[str] = "AES-256-GCM"
AES_KEY_SIZE: Final[int] = 32
AES_NONCE_SIZE: Final[int] = 12
AES_TAG_SIZE: Final[int] = 16


# ---------------------------------------------------------------------------
# Key document
# ---------------------------------------------------------------------------


class ConfigStatus(enum.Enum):
    CREATED = "created"
    VALID = "valid"
    FIXED_MISSING_KEY = "fixed-missing-key"


@dataclass
class Config:
    key: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_key(self) -> bool:
        return isinstance(self.key, str) and bool(self.key.strip())

    def require_key(self) -> str:
        if not self.has_key:
            raise KeyMissing('No "key" in config. Run "eenv init" to set it.')
        return self.key.strip()

    def to_dict(self) -> Dict[str, Any]:
        doc = dict(self.extra)
        if self.key is not None:
            doc["key"] = self.key
        return doc

    @classmethod
    def from_dict(cls, doc: Dict[str, Any]) -> "Config":
        extra = {k: v for k, v in doc.items() if k != "key"}
        key = doc.get("key")
        return cls(key=key if isinstance(key, str) else None, extra=extra)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(store: "FileStore", settings: "Settings") -> Config:
    """
    Load the key document.

    A blank file is an empty document.

    Raises:
        ConfigMissing: if the file does not exist
        ConfigInvalidDocument: if it is not a JSON object
    """

    name = settings.config_name
    if not store.exists(name):
        raise ConfigMissing(f'Missing {name}. Run "eenv init" first.')

    raw = store.read_text(name)
    if not raw.strip():
        return Config()

    try:
        doc = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigInvalidDocument(f"{name} is not valid JSON: {e}") from e

    if not isinstance(doc, dict):
        raise ConfigInvalidDocument(f"{name} must contain a JSON object")

    return Config.from_dict(doc)


def save_config(store: "FileStore", settings: "Settings", config: Config) -> None:
    """Write the key document owner-only."""
    text = json.dumps(config.to_dict(), indent=2) + "\n"
    store.write_text(settings.config_name, text, private=True)
    logger.debug("saved %s", settings.config_name)


def load_key(store: "FileStore", settings: "Settings") -> str:
    """
    Return the stored key string.

    Raises:
        ConfigMissing, ConfigInvalidDocument, KeyMissing
    """

    return load_config(store, settings).require_key()


def config_is_valid(store: "FileStore", settings: "Settings") -> bool:
    """True if the key document exists, parses, and holds a non-empty key."""
    try:
        return load_config(store, settings).has_key
    except (ConfigMissing, ConfigInvalidDocument):
        return False


def ensure_config(store: "FileStore", settings: "Settings") -> ConfigStatus:
    """
    Make sure a usable key is stored, generating one if needed.

    A key is never invented while an encrypted artifact exists: the new
    key could not decrypt it, and re-encrypting would orphan every other
    clone's copy.

    Raises:
        ConfigInvalidDocument: the document exists but cannot be parsed;
            it is left untouched for the user to repair
        KeyMissing: no key stored and an artifact is present
    """

    try:
        config = load_config(store, settings)
    except ConfigMissing:
        config = None

    if config is not None and config.has_key:
        return ConfigStatus.VALID

    if store.exists(settings.artifact_name):
        raise KeyMissing(
            f"{settings.artifact_name} exists but no key is stored. "
            'Run "eenv init" and enter the shared key.'
        )

    if config is None:
        save_config(store, settings, Config(key=generate_key()))
        logger.info("created %s", settings.config_name)
        return ConfigStatus.CREATED

    config.key = generate_key()
    save_config(store, settings, config)
    logger.info("injected key into %s", settings.config_name)
    return ConfigStatus.FIXED_MISSING_KEY
