"""
AES-256-GCM 认证加密。

密文格式：nonce(12) ‖ ciphertext ‖ tag(16)。
每次加密使用新的随机 nonce；解密失败时不返回任何部分明文。
"""

from __future__ import annotations

import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from b3vault.core.crypto.params import KEY_LENGTH, NONCE_LENGTH, TAG_LENGTH
from b3vault.core.errors import DecryptionError


def _check_key(key: bytes | bytearray) -> None:
    if len(key) != KEY_LENGTH:
        raise ValueError(f"密钥长度必须为 {KEY_LENGTH} 字节（当前 {len(key)}）")


def encrypt(plaintext: bytes, key: bytes | bytearray) -> bytes:
    """加密并返回 nonce ‖ ciphertext ‖ tag。"""
    _check_key(key)
    nonce = os.urandom(NONCE_LENGTH)
    return nonce + AESGCM(bytes(key)).encrypt(nonce, plaintext, None)


def decrypt(blob: bytes, key: bytes | bytearray) -> bytes:
    """
    解密 encrypt() 的输出。

    Raises:
        DecryptionError: 数据过短或认证失败（密码错误或数据损坏）。
    """
    _check_key(key)
    if len(blob) < NONCE_LENGTH + TAG_LENGTH:
        raise DecryptionError("密文过短：密码错误或数据已损坏")

    nonce, ciphertext = blob[:NONCE_LENGTH], blob[NONCE_LENGTH:]
    try:
        return AESGCM(bytes(key)).decrypt(nonce, ciphertext, None)
    except InvalidTag:
        raise DecryptionError("认证失败：密码错误或数据已损坏") from None


def zero_bytes(buf: bytearray) -> None:
    """原地清零密钥缓冲区。"""
    for i in range(len(buf)):
        buf[i] = 0
