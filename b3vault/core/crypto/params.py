"""
保险库加密参数（固定常量，不可通过环境变量调整）。

修改任一参数都会导致已有保险库无法解锁；如需调整，
必须同时提升 VAULT_FORMAT_VERSION 并提供迁移路径。
"""

# Argon2id（抗 GPU/ASIC 的内存困难 KDF）
ARGON2_MEMORY_KIB = 64 * 1024  # 64 MiB
ARGON2_ITERATIONS = 3
ARGON2_LANES = 4
KEY_LENGTH = 32  # AES-256

SALT_LENGTH = 32
NONCE_LENGTH = 12  # GCM 标准 96 位
TAG_LENGTH = 16

MIN_PASSWORD_LENGTH = 12

# metadata.yaml
VAULT_FORMAT_VERSION = "1.0"
ENCRYPTION_ALGORITHM = "AES-256-GCM"
KDF_ALGORITHM = "Argon2id"
