from __future__ import annotations

import pytest

from b3vault.core.wallet import Wallet
from b3vault.data.vault.session_cache import SessionCache
from b3vault.data.vault.vault_store import VaultStore


@pytest.fixture
def wallet() -> Wallet:
    return Wallet()


@pytest.fixture
def vault_dir(tmp_path):
    return tmp_path / "wallet"


@pytest.fixture
def store(vault_dir) -> VaultStore:
    return VaultStore(vault_dir)


@pytest.fixture
def cache(vault_dir) -> SessionCache:
    return SessionCache(vault_dir)
