"""
eenv

Encrypted .env files you can commit: discovers repository-local secret
files, derives value-stripped .example skeletons, seals every env file
into one authenticated-encrypted artifact, and gates commits so raw
secrets never reach the history.
"""

__version__ = "0.1.0"

from .config import load_key, ensure_config
from .envelope import Envelope, encrypt_map, decrypt_map
from .envfile import parse, serialize
from .file_scanner import FileInventory
from .keys import derive_key
from .pipeline import run_init, run_update, run_apply, repo_status
from .precommit import GateState, run_gate
from .rules import Classification, ClassifiedPath, classify
from .settings import Settings
from .skeleton import extract_skeleton
from .store import FileStore, LocalFileStore, MemoryFileStore

__all__ = [
    "load_key",
    "ensure_config",
    "Envelope",
    "encrypt_map",
    "decrypt_map",
    "parse",
    "serialize",
    "FileInventory",
    "derive_key",
    "run_init",
    "run_update",
    "run_apply",
    "repo_status",
    "GateState",
    "run_gate",
    "Classification",
    "ClassifiedPath",
    "classify",
    "Settings",
    "extract_skeleton",
    "FileStore",
    "LocalFileStore",
    "MemoryFileStore",
]
