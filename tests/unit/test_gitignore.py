# tests/unit/test_gitignore.py: Unit tests for ignore-file reconciliation.

from unittest.mock import patch

from eenv.gitignore import ensure_gitignore, reconcile
from eenv.store import MemoryFileStore

MARKER = "# Added by eenv"


def test_reconcile_empty_file():
    edit = reconcile("", [".env", "eenv.config.json"], MARKER)

    assert edit.added == [".env", "eenv.config.json"]
    assert edit.content == "# Added by eenv\n.env\neenv.config.json\n\n"


def test_reconcile_adds_missing_newline():
    """Tests that the block starts on its own line."""
    edit = reconcile("node_modules", [".env"], MARKER)
    assert edit.content == "node_modules\n# Added by eenv\n.env\n\n"


def test_reconcile_only_adds_missing_paths():
    edit = reconcile("dist\n.env\n", [".env", "api/.env", "api/.env"], MARKER)

    assert edit.added == ["api/.env"]
    assert edit.content == "dist\n.env\n# Added by eenv\napi/.env\n\n"


def test_reconcile_is_idempotent():
    """Tests that a second run with the same paths changes nothing."""
    first = reconcile("dist\n", [".env", "eenv.config.json"], MARKER)
    second = reconcile(first.content, [".env", "eenv.config.json"], MARKER)

    assert not second.changed
    assert second.content == first.content


def test_reconcile_normalizes_separators():
    edit = reconcile("", ["api\\.env.local"], MARKER)
    assert edit.added == ["api/.env.local"]


def test_reconcile_matches_trimmed_lines():
    assert not reconcile("  .env  \n", [".env"], MARKER).changed


def test_ensure_gitignore_writes_only_on_change(settings):
    store = MemoryFileStore({".gitignore": "dist\n"})

    edit = ensure_gitignore(store, settings, [".env"])
    assert edit.changed
    assert edit.path == ".gitignore"
    assert store.files[".gitignore"] == "dist\n# Added by eenv\n.env\n\n"

    with patch.object(store, "write_text") as write:
        again = ensure_gitignore(store, settings, [".env"])
    assert not again.changed
    write.assert_not_called()


def test_ensure_gitignore_creates_file(settings):
    store = MemoryFileStore()
    ensure_gitignore(store, settings, ["eenv.config.json"])
    assert store.files[".gitignore"] == "# Added by eenv\neenv.config.json\n\n"
