import pytest

import navigator_vault
from navigator_vault.config import VaultConfig

# Low-cost Argon2id params so tests run in milliseconds instead of seconds.
FAST_CONFIG = VaultConfig(memory_cost=64, iterations=1, parallelism=1)


@pytest.fixture
def fast_config():
    """Create a low-cost KDF config for tests."""
    return FAST_CONFIG


@pytest.fixture
def vault_path(tmp_path):
    """Return a vault path inside tmp_path."""
    return tmp_path / "vault.nvlt"


@pytest.fixture
def open_vault(vault_path):
    """Factory opening handles on the shared vault path with fast params."""
    handles = []

    def _open(password="correct-horse", path=None, **kwargs):
        kwargs.setdefault("config", FAST_CONFIG)
        handle = navigator_vault.open(path or vault_path, password, **kwargs)
        handles.append(handle)
        return handle

    yield _open
    for handle in handles:
        handle.close()


@pytest.fixture
def sample():
    """Return a structured sample value."""
    return {
        "name": "GitHub perso",
        "value": 42,
        "tags": ["work", "git"],
        "optional": None,
        "nested": {"enabled": True, "ratio": 0.5},
    }
