from __future__ import annotations

import pytest

import b3vault.flows  # noqa: F401 - 触发依赖注册
from b3vault.core.dependency import dependency, override, register, registered_names, resolve
from b3vault.data.vault.session_cache import SessionCache
from b3vault.data.vault.vault_store import VaultStore
from b3vault.flows.wallet import create_wallet, wallet_status
from factories import PASSWORD


def test_container_registers_vault_dependencies():
    assert {"vault_store", "session_cache"} <= set(registered_names())


def test_default_factories_follow_env_dir(monkeypatch, vault_dir):
    monkeypatch.setenv("B3VAULT_DIR", str(vault_dir))
    assert resolve("vault_store").path == vault_dir
    assert resolve("session_cache").path == vault_dir


def test_override_points_flows_at_another_dir(vault_dir):
    with override(
        vault_store=lambda: VaultStore(vault_dir),
        session_cache=lambda: SessionCache(vault_dir),
    ):
        create_wallet(password=PASSWORD)
        status = wallet_status()

    assert status.path == vault_dir
    assert status.exists and status.session_open
    assert resolve("vault_store").path != vault_dir


def test_explicit_argument_wins_over_registry(store, cache):
    with override(vault_store=lambda: pytest.fail("不应调用工厂")):
        status = wallet_status(vault_store=store, session_cache=cache)
    assert not status.exists


def test_override_of_unknown_name_is_removed_on_exit():
    @dependency
    def needs(*, clock: str | None = None) -> str | None:
        return clock

    with override(clock=lambda: "tick"):
        assert needs() == "tick"
    assert needs() is None
    assert "clock" not in registered_names()


def test_register_rejects_a_second_factory():
    with pytest.raises(ValueError, match="vault_store"):
        register("vault_store")(lambda: None)


def test_resolve_unknown_name():
    with pytest.raises(LookupError):
        resolve("nope")
