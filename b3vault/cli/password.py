"""
CLI 密码读取。

优先读取 `B3VAULT_PASSWORD`（脚本/测试），否则用 getpass 交互输入（不回显）。
"""

from __future__ import annotations

import getpass

from b3vault.core.config import get_env_password
from b3vault.core.container import get_session_cache


def read_password(*, confirm: bool = False) -> str:
    """
    读取保险库密码。

    Args:
        confirm: 是否要求再次输入确认（创建保险库时使用）。

    Raises:
        ValueError: 两次输入不一致。
    """
    env_password = get_env_password()
    if env_password is not None:
        return env_password

    password = getpass.getpass("保险库密码：")
    if confirm and getpass.getpass("再次输入密码：") != password:
        raise ValueError("两次输入的密码不一致")
    return password


def session_password() -> str | None:
    """会话已打开（缓存中有数据密钥）时返回 None，否则读取密码。"""
    cache = get_session_cache()
    if cache.exists() and cache.has_key():
        return None
    return read_password()
