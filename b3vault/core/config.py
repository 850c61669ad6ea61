from __future__ import annotations

import os


def get_vault_dir() -> str:
    """
    返回保险库目录。

    Returns:
        目录路径；默认 `data/wallet`（可由 `B3VAULT_DIR` 覆盖）。
    """
    return os.getenv("B3VAULT_DIR", "data/wallet")


def is_debug() -> bool:
    """
    是否输出调试日志。

    Returns:
        True/False（由 `B3VAULT_DEBUG=1` 控制）。
    """
    return os.getenv("B3VAULT_DEBUG", "0") == "1"


def get_env_password() -> str | None:
    """
    返回非交互场景的保险库密码。

    Returns:
        `B3VAULT_PASSWORD` 的值；未设置或为空时返回 None（CLI 将提示输入）。

    说明：仅用于脚本与测试，环境变量对同用户进程可见。
    """
    return os.getenv("B3VAULT_PASSWORD") or None
