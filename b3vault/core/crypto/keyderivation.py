"""
密码 → 主密钥派生（Argon2id）。

- 每个保险库一份 32 字节随机盐（salt.bin），盐不保密；
- 主密钥只用于包裹数据密钥，不直接加密账本；
- 数据密钥为 32 字节随机值，以 bytearray 返回以便锁定时原地清零。
"""

from __future__ import annotations

import os

from cryptography.hazmat.primitives.kdf.argon2 import Argon2id

from b3vault.core.crypto.params import (
    ARGON2_ITERATIONS,
    ARGON2_LANES,
    ARGON2_MEMORY_KIB,
    KEY_LENGTH,
    SALT_LENGTH,
)


def generate_salt() -> bytes:
    """生成 32 字节随机盐。"""
    return os.urandom(SALT_LENGTH)


def derive_key(password: str, salt: bytes) -> bytearray:
    """
    由密码与盐派生 32 字节主密钥。

    Args:
        password: 用户密码（UTF-8 编码后参与计算）。
        salt: 保险库的盐。

    Returns:
        主密钥（bytearray，调用方用完后应清零）。

    说明：
        64 MiB / 3 轮 / 4 线程，单次派生耗时约数百毫秒，不可取消。
    """
    kdf = Argon2id(
        salt=salt,
        length=KEY_LENGTH,
        iterations=ARGON2_ITERATIONS,
        lanes=ARGON2_LANES,
        memory_cost=ARGON2_MEMORY_KIB,
    )
    return bytearray(kdf.derive(password.encode("utf-8")))


def generate_data_key() -> bytearray:
    """生成 32 字节随机数据密钥。"""
    return bytearray(os.urandom(KEY_LENGTH))
