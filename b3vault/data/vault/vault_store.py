"""
加密保险库的磁盘存储。

目录结构：
    <dir>/
    ├─ salt.bin            # Argon2id 盐（32 字节，明文）
    ├─ encrypted_key.bin   # 数据密钥，用主密钥加密（nonce ‖ ct ‖ tag）
    ├─ metadata.yaml       # {version, algorithm, kdf}
    └─ vault.enc           # 账本 YAML，用数据密钥加密

两级密钥：
- 主密钥 = Argon2id(密码, 盐)，只用于包裹数据密钥，用完即清零；
- 数据密钥随机生成，加密账本；修改密码只需重新包裹数据密钥。

状态：
- LockedVault：只知道路径与元数据，不能读写账本；
- UnlockedVault：持有账本与数据密钥；lock() 后密钥清零，再保存抛出 StateError。
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from pydantic import ValidationError as SchemaError

from b3vault.core.crypto.encryption import decrypt, encrypt, zero_bytes
from b3vault.core.crypto.keyderivation import derive_key, generate_data_key, generate_salt
from b3vault.core.crypto.params import MIN_PASSWORD_LENGTH
from b3vault.core.errors import (
    AuthenticationError,
    DecryptionError,
    IntegrityError,
    PasswordPolicyError,
    StateError,
    VaultError,
    VaultExistsError,
    VaultNotFoundError,
)
from b3vault.core.wallet import Wallet
from b3vault.data.vault.schema import (
    VaultMetadata,
    dump_metadata,
    dump_wallet,
    load_metadata,
    load_wallet,
)

logger = logging.getLogger(__name__)

SALT_FILE = "salt.bin"
KEY_FILE = "encrypted_key.bin"
METADATA_FILE = "metadata.yaml"
VAULT_FILE = "vault.enc"


@dataclass(slots=True)
class LockedVault:
    """已锁定的保险库（无密钥、无账本）。"""

    path: Path
    metadata: VaultMetadata


@dataclass(slots=True)
class UnlockedVault:
    """
    已解锁的保险库。

    说明：
    - wallet 为内存中的账本，修改后需调用 VaultStore.save 写回；
    - key 为数据密钥（bytearray），lock() 原地清零后不可再用。
    """

    path: Path
    metadata: VaultMetadata
    wallet: Wallet
    _key: bytearray | None = field(default=None, repr=False)

    @property
    def is_locked(self) -> bool:
        return self._key is None

    @property
    def key(self) -> bytearray:
        """
        Raises:
            StateError: 密钥已清除。
        """
        if self._key is None:
            raise StateError("保险库已锁定：数据密钥已清除，无法保存")
        return self._key

    def lock(self) -> LockedVault:
        """清零数据密钥并返回锁定态。"""
        if self._key is not None:
            zero_bytes(self._key)
            self._key = None
        return LockedVault(path=self.path, metadata=self.metadata)


def vault_exists(dir_path: str | Path) -> bool:
    """目录下是否存在保险库（salt.bin 与 vault.enc 均存在）。"""
    p = Path(dir_path)
    return (p / SALT_FILE).is_file() and (p / VAULT_FILE).is_file()


class VaultStore:
    """
    单个目录下的保险库读写。

    所有写入均为"临时文件 + 原子替换"，权限 0600。
    """

    def __init__(self, dir_path: str | Path) -> None:
        self.path = Path(dir_path)

    def exists(self) -> bool:
        return vault_exists(self.path)

    # ========== 创建 ==========

    def create(self, password: str) -> UnlockedVault:
        """
        创建空保险库。

        Returns:
            已解锁的空账本保险库（持有数据密钥）。

        Raises:
            PasswordPolicyError: 密码短于 12 个字符。
            VaultExistsError: 目录下已存在保险库。
        """
        if len(password) < MIN_PASSWORD_LENGTH:
            raise PasswordPolicyError(f"密码至少需要 {MIN_PASSWORD_LENGTH} 个字符")
        if self.exists():
            raise VaultExistsError(f"保险库已存在：{self.path}")

        self.path.mkdir(parents=True, exist_ok=True)
        os.chmod(self.path, 0o700)

        # 1. 盐 + 主密钥
        salt = generate_salt()
        master_key = derive_key(password, salt)

        # 2. 随机数据密钥，用主密钥包裹
        data_key = generate_data_key()
        try:
            wrapped = encrypt(bytes(data_key), master_key)
        finally:
            zero_bytes(master_key)

        # 3. 写入盐、包裹密钥、元数据
        metadata = VaultMetadata()
        _write_atomic(self.path / SALT_FILE, salt)
        _write_atomic(self.path / KEY_FILE, wrapped)
        _write_atomic(self.path / METADATA_FILE, dump_metadata(metadata))

        # 4. 加密空账本
        vault = UnlockedVault(path=self.path, metadata=metadata, wallet=Wallet(), _key=data_key)
        self.save(vault)
        logger.info("[Vault] 已创建保险库：%s", self.path)
        return vault

    # ========== 解锁 / 加载 ==========

    def read_metadata(self) -> VaultMetadata:
        self._require_exists()
        meta_path = self.path / METADATA_FILE
        if not meta_path.is_file():
            return VaultMetadata()
        return load_metadata(meta_path.read_bytes())

    def unlock(self, password: str) -> bytearray:
        """
        用密码解开数据密钥。

        Raises:
            VaultNotFoundError: 保险库不存在。
            AuthenticationError: 密码错误（或 encrypted_key.bin 损坏，二者无法区分）。
        """
        self._require_exists()
        salt = (self.path / SALT_FILE).read_bytes()
        wrapped = (self.path / KEY_FILE).read_bytes()

        master_key = derive_key(password, salt)
        try:
            return bytearray(decrypt(wrapped, master_key))
        except DecryptionError:
            raise AuthenticationError("密码错误或密钥文件已损坏") from None
        finally:
            zero_bytes(master_key)

    def load(self, key: bytes | bytearray) -> Wallet:
        """
        用已验证的数据密钥解密账本。

        Raises:
            IntegrityError: vault.enc 认证失败或内容格式无效。
        """
        blob = (self.path / VAULT_FILE).read_bytes()
        try:
            payload = decrypt(blob, key)
        except DecryptionError as err:
            raise IntegrityError(f"vault.enc 校验失败（文件损坏或被篡改）：{err}") from None
        try:
            return load_wallet(payload)
        except (yaml.YAMLError, SchemaError, ValueError) as err:
            raise IntegrityError(f"账本内容格式无效：{err}") from err

    def open(self, password: str) -> UnlockedVault:
        """解锁并加载账本。"""
        metadata = self.read_metadata()
        key = self.unlock(password)
        try:
            wallet = self.load(key)
        except VaultError:
            zero_bytes(key)
            raise
        return UnlockedVault(path=self.path, metadata=metadata, wallet=wallet, _key=key)

    def attach(self, wallet: Wallet, key: bytearray) -> UnlockedVault:
        """用已有账本与数据密钥构造解锁态（会话缓存恢复使用）。"""
        return UnlockedVault(path=self.path, metadata=self.read_metadata(), wallet=wallet, _key=key)

    # ========== 保存 ==========

    def save(self, vault: UnlockedVault) -> None:
        """
        规范化序列化 → 加密 → 原子覆盖 vault.enc。

        Raises:
            StateError: 保险库已锁定（密钥已清除），vault.enc 不会被修改。
        """
        key = vault.key
        payload = dump_wallet(vault.wallet)
        _write_atomic(self.path / VAULT_FILE, encrypt(payload, key))
        logger.debug("[Vault] 已保存 vault.enc（明文 %d 字节）", len(payload))

    def _require_exists(self) -> None:
        if not self.exists():
            raise VaultNotFoundError(f"未找到保险库：{self.path}（请先执行 wallet create）")


def _write_atomic(path: Path, data: bytes) -> None:
    """写入同目录临时文件（0600）后 os.replace 覆盖目标。"""
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp, 0o600)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
