from __future__ import annotations

import stat
from datetime import date

import pytest
import yaml

from b3vault.core.errors import (
    AuthenticationError,
    IntegrityError,
    PasswordPolicyError,
    StateError,
    VaultExistsError,
    VaultNotFoundError,
)
from b3vault.data.vault.vault_store import LockedVault, VaultStore, vault_exists
from factories import PASSWORD, make_earning, make_trade


def _mode(path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


def test_create_writes_layout(store, vault_dir):
    vault = store.create(PASSWORD)

    for name in ("salt.bin", "encrypted_key.bin", "metadata.yaml", "vault.enc"):
        assert (vault_dir / name).is_file()
        assert _mode(vault_dir / name) == 0o600
    assert len((vault_dir / "salt.bin").read_bytes()) == 32
    assert yaml.safe_load((vault_dir / "metadata.yaml").read_text()) == {
        "version": "1.0",
        "algorithm": "AES-256-GCM",
        "kdf": "Argon2id",
    }
    assert vault_exists(vault_dir)
    assert len(vault.key) == 32
    assert vault.wallet.transactions == ()


def test_create_rejects_short_password(store, vault_dir):
    with pytest.raises(PasswordPolicyError):
        store.create("short")
    assert not vault_exists(vault_dir)


def test_create_refuses_to_overwrite(store):
    store.create(PASSWORD)
    with pytest.raises(VaultExistsError):
        store.create(PASSWORD)


def test_unlock_missing_vault(store):
    with pytest.raises(VaultNotFoundError):
        store.unlock(PASSWORD)


def test_wrong_password(store):
    store.create(PASSWORD)
    with pytest.raises(AuthenticationError):
        store.unlock("not the right password")
    with pytest.raises(AuthenticationError):
        store.open("not the right password")


def test_save_and_reopen_round_trip(store):
    vault = store.create(PASSWORD)
    w = vault.wallet
    w.add_trades([make_trade("ITSA4", "100", "10.50"), make_trade("PETR4", "7", "38.21", day=date(2024, 2, 1))])
    w.add_earnings([make_earning("ITSA4", "12.50"), make_earning("PETR4", "9.1", day=date(2024, 4, 1))])
    store.save(vault)

    reopened = store.open(PASSWORD)
    assert len(reopened.wallet.transactions) == 2
    assert len(reopened.wallet.earnings) == 2
    for ticker, asset in w.assets.items():
        other = reopened.wallet.get_asset(ticker)
        assert (other.quantity, other.average_cost, other.invested_capital, other.total_earnings) == (
            asset.quantity,
            asset.average_cost,
            asset.invested_capital,
            asset.total_earnings,
        )
    assert bytes(reopened.key) == bytes(vault.key)


def test_save_after_lock_raises_and_leaves_file(store, vault_dir):
    vault = store.create(PASSWORD)
    before = (vault_dir / "vault.enc").read_bytes()

    key = vault.key
    locked = vault.lock()
    assert isinstance(locked, LockedVault)
    assert key == bytearray(32)
    assert vault.is_locked

    vault.wallet.add_trade(make_trade())
    with pytest.raises(StateError):
        store.save(vault)
    assert (vault_dir / "vault.enc").read_bytes() == before


def test_tampered_payload_is_integrity_error(store, vault_dir):
    store.create(PASSWORD)
    blob = bytearray((vault_dir / "vault.enc").read_bytes())
    blob[20] ^= 0xFF
    (vault_dir / "vault.enc").write_bytes(bytes(blob))

    key = store.unlock(PASSWORD)
    with pytest.raises(IntegrityError):
        store.load(key)
    with pytest.raises(IntegrityError):
        store.open(PASSWORD)


def test_read_metadata(store):
    store.create(PASSWORD)
    meta = VaultStore(store.path).read_metadata()
    assert (meta.version, meta.algorithm, meta.kdf) == ("1.0", "AES-256-GCM", "Argon2id")
