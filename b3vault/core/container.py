"""
依赖工厂注册。

flows 通过参数名 `vault_store` / `session_cache` 获得默认实例，
目录由 `B3VAULT_DIR` 决定；测试直接传入指向 tmp_path 的实例，
或用 dependency.override 临时替换工厂。

本模块在 b3vault/flows/__init__.py 中导入，保证任何 flow 调用前注册完成。
"""

from __future__ import annotations

from b3vault.core.config import get_vault_dir
from b3vault.core.dependency import register
from b3vault.data.vault.session_cache import SessionCache
from b3vault.data.vault.vault_store import VaultStore


@register("vault_store")
def get_vault_store() -> VaultStore:
    """当前配置目录的保险库。"""
    return VaultStore(get_vault_dir())


@register("session_cache")
def get_session_cache() -> SessionCache:
    """当前配置目录的会话缓存（与保险库同目录）。"""
    return SessionCache(get_vault_dir())
