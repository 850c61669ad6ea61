from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from b3vault.core.crypto.encryption import zero_bytes
from b3vault.core.dependency import dependency
from b3vault.core.errors import StateError, VaultError
from b3vault.core.log import log
from b3vault.data.vault.schema import VaultMetadata
from b3vault.data.vault.session_cache import SessionCache
from b3vault.data.vault.vault_store import UnlockedVault, VaultStore


@dataclass(slots=True)
class WalletStatus:
    """保险库状态快照（不含任何秘密）。"""

    path: Path
    exists: bool
    session_open: bool
    metadata: VaultMetadata | None
    trades: int | None
    assets: int | None


@dependency
def create_wallet(
    *,
    password: str,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> UnlockedVault:
    """
    创建空保险库并开启会话。

    Args:
        password: 保险库密码（至少 12 个字符）。
        vault_store: 保险库存储（可选，自动注入）。
        session_cache: 会话缓存（可选，自动注入）。

    Returns:
        已解锁的空保险库。

    Raises:
        PasswordPolicyError: 密码过短。
        VaultExistsError: 目录下已存在保险库。

    副作用：
        写入 salt.bin / encrypted_key.bin / metadata.yaml / vault.enc，
        以及会话缓存 vault.unlocked / session.key。
    """
    vault = vault_store.create(password)
    session_cache.write(vault.wallet, vault.key)
    log(f"[Wallet] 已创建保险库：{vault.path}")
    return vault


@dependency
def open_wallet(
    *,
    password: str,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> UnlockedVault:
    """
    用密码解锁保险库并写入会话缓存。

    Raises:
        VaultNotFoundError: 保险库不存在。
        AuthenticationError: 密码错误。
        IntegrityError: vault.enc 损坏。

    说明：
        会话缓存为明文（0600），lock_wallet 之前后续命令无需再输入密码。
    """
    vault = vault_store.open(password)
    session_cache.write(vault.wallet, vault.key)
    log(f"[Wallet] 已解锁：{len(vault.wallet.transactions)} 笔交易，{len(vault.wallet.assets)} 个持仓")
    return vault


@dependency
def lock_wallet(
    *,
    vault: UnlockedVault | None = None,
    session_cache: SessionCache | None = None,
) -> bool:
    """
    锁定：清零内存中的数据密钥并删除会话缓存。

    Args:
        vault: 当前进程持有的解锁态（可选）。
        session_cache: 会话缓存（可选，自动注入）。

    Returns:
        是否删除了会话缓存文件。
    """
    if vault is not None:
        vault.lock()
    removed = session_cache.clear()
    log("[Wallet] 已锁定" if removed else "[Wallet] 当前没有打开的会话")
    return removed


@dependency
def load_session(
    *,
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> UnlockedVault:
    """
    获取解锁态保险库。

    顺序：
    1. 会话缓存中有数据密钥 → 用该密钥解密 vault.enc（只读 session.key，
       不解析 vault.unlocked；vault.enc 仍是权威来源）；
    2. 否则使用密码解锁；
    3. 两者都没有 → StateError。

    Raises:
        StateError: 无会话且未提供密码。
        AuthenticationError / IntegrityError: 解锁或解密失败。
    """
    if session_cache.exists():
        key = session_cache.load_key()
        if key is not None:
            try:
                wallet = vault_store.load(key)
            except VaultError:
                zero_bytes(key)
                raise
            return vault_store.attach(wallet, key)

    if password is None:
        raise StateError("保险库已锁定：请先执行 wallet open 或提供密码")
    return vault_store.open(password)


@dependency
def persist(
    vault: UnlockedVault,
    *,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> None:
    """
    加密保存账本；会话打开时同步刷新 vault.unlocked。

    Raises:
        StateError: vault 已锁定，vault.enc 不会被修改。
    """
    vault_store.save(vault)
    if session_cache.exists():
        session_cache.write(vault.wallet, None)


@contextmanager
def unlocked_session(
    password: str | None,
    vault_store: VaultStore,
    session_cache: SessionCache,
) -> Iterator[UnlockedVault]:
    """在 with 块内持有解锁态，退出时清零数据密钥。"""
    vault = load_session(password=password, vault_store=vault_store, session_cache=session_cache)
    try:
        yield vault
    finally:
        vault.lock()


@dependency
def wallet_status(
    *,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> WalletStatus:
    """
    读取保险库状态。

    说明：
        会话打开时从 vault.unlocked 读取交易/持仓数量，否则为 None（不需要密码）。
    """
    exists = vault_store.exists()
    session_open = exists and session_cache.exists()
    trades = assets = None
    if session_open:
        wallet, key = session_cache.load()
        if key is not None:
            zero_bytes(key)
        trades, assets = len(wallet.transactions), len(wallet.assets)
    return WalletStatus(
        path=vault_store.path,
        exists=exists,
        session_open=session_open,
        metadata=vault_store.read_metadata() if exists else None,
        trades=trades,
        assets=assets,
    )
