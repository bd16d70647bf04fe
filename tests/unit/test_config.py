# tests/unit/test_config.py: Unit tests for the key document.

import json
import os
import stat

import pytest

from eenv.config import (
    Config,
    ConfigStatus,
    config_is_valid,
    ensure_config,
    load_config,
    load_key,
    save_config,
)
from eenv.errors import ConfigInvalidDocument, ConfigMissing, KeyMissing
from eenv.store import LocalFileStore, MemoryFileStore


def test_load_missing(settings):
    with pytest.raises(ConfigMissing):
        load_config(MemoryFileStore(), settings)


def test_load_blank_is_empty_document(settings):
    config = load_config(MemoryFileStore({"eenv.config.json": "  \n"}), settings)
    assert config == Config()
    assert not config.has_key


@pytest.mark.parametrize("text", ["{not json", "[1, 2]", '"key"'])
def test_load_invalid(settings, text):
    with pytest.raises(ConfigInvalidDocument):
        load_config(MemoryFileStore({"eenv.config.json": text}), settings)


def test_load_key(settings):
    store = MemoryFileStore({"eenv.config.json": '{"key": "  abc  "}'})
    assert load_key(store, settings) == "abc"


@pytest.mark.parametrize("doc", [{}, {"key": ""}, {"key": "   "}, {"key": 42}])
def test_require_key(settings, doc):
    store = MemoryFileStore({"eenv.config.json": json.dumps(doc)})
    with pytest.raises(KeyMissing):
        load_key(store, settings)
    assert not config_is_valid(store, settings)


def test_save_preserves_other_members(settings):
    """Tests that unknown members survive a load/save cycle."""
    store = MemoryFileStore({"eenv.config.json": '{"note": "team", "key": "old"}'})

    config = load_config(store, settings)
    config.key = "new"
    save_config(store, settings, config)

    assert json.loads(store.files["eenv.config.json"]) == {"note": "team", "key": "new"}
    assert store.files["eenv.config.json"].endswith("\n")


def test_save_is_private(settings):
    store = MemoryFileStore()
    save_config(store, settings, Config(key="k"))
    assert store.modes["eenv.config.json"] == 0o600


@pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
def test_save_is_private_on_disk(tmp_path, settings):
    save_config(LocalFileStore(tmp_path), settings, Config(key="k"))

    mode = stat.S_IMODE((tmp_path / "eenv.config.json").stat().st_mode)
    assert mode == 0o600


def test_ensure_config_created(settings):
    store = MemoryFileStore()

    assert ensure_config(store, settings) is ConfigStatus.CREATED
    assert config_is_valid(store, settings)
    assert store.modes["eenv.config.json"] == 0o600


def test_ensure_config_valid_untouched(settings):
    store = MemoryFileStore({"eenv.config.json": '{"key": "abc"}'})

    assert ensure_config(store, settings) is ConfigStatus.VALID
    assert store.files["eenv.config.json"] == '{"key": "abc"}'


def test_ensure_config_fixes_missing_key(settings):
    store = MemoryFileStore({"eenv.config.json": '{"note": "x"}'})

    assert ensure_config(store, settings) is ConfigStatus.FIXED_MISSING_KEY
    doc = json.loads(store.files["eenv.config.json"])
    assert doc["note"] == "x"
    assert doc["key"]


def test_ensure_config_with_artifact_needs_shared_key(settings):
    """Tests that no key is generated while an artifact exists."""
    store = MemoryFileStore({"eenv.enc.json": "{}"})

    with pytest.raises(KeyMissing):
        ensure_config(store, settings)
    assert "eenv.config.json" not in store.files


def test_ensure_config_invalid_document_is_left_alone(settings):
    store = MemoryFileStore({"eenv.config.json": "{broken"})

    with pytest.raises(ConfigInvalidDocument):
        ensure_config(store, settings)
    assert store.files["eenv.config.json"] == "{broken"
