# tests/conftest.py: Shared fixtures.

import pytest

from eenv.settings import Settings
from eenv.store import LocalFileStore, MemoryFileStore
from eenv.utils import generate_key


@pytest.fixture
def settings() -> Settings:
    """Default settings, as if no eenv.yml existed."""
    return Settings()


@pytest.fixture
def mem_store() -> MemoryFileStore:
    return MemoryFileStore()


@pytest.fixture
def disk_store(tmp_path) -> LocalFileStore:
    """A store rooted at a fresh temporary repository."""
    (tmp_path / ".git").mkdir()
    return LocalFileStore(tmp_path)


@pytest.fixture
def key() -> str:
    return generate_key()
