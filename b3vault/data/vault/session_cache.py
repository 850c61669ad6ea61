"""
解锁会话缓存（明文，不安全）。

⚠️ 本模块有意以明文形式把账本与数据密钥写入磁盘，用于在多次 CLI 调用之间
免于重复输入密码。文件权限 0600，但任何能读取该用户文件的进程都能拿到密钥。

约定：
- 只由 flows.wallet 在 open/lock 时显式调用，VaultStore 永远不会回退到这里；
- 缓存不是账本的权威来源：vault.enc 才是；
- lock 时删除两个文件（先覆盖为零再删除）。

文件：
    vault.unlocked   # 账本 YAML 明文
    session.key      # 数据密钥（32 字节）
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from b3vault.core.crypto.params import KEY_LENGTH
from b3vault.core.wallet import Wallet
from b3vault.data.vault.schema import dump_wallet, load_wallet

logger = logging.getLogger(__name__)

UNLOCKED_FILE = "vault.unlocked"
SESSION_KEY_FILE = "session.key"


class SessionCache:
    """单个保险库目录下的明文会话缓存。"""

    def __init__(self, dir_path: str | Path) -> None:
        self.path = Path(dir_path)

    @property
    def unlocked_path(self) -> Path:
        return self.path / UNLOCKED_FILE

    @property
    def key_path(self) -> Path:
        return self.path / SESSION_KEY_FILE

    def exists(self) -> bool:
        return self.unlocked_path.is_file()

    def has_key(self) -> bool:
        return self.key_path.is_file()

    def write(self, wallet: Wallet, key: bytes | bytearray | None) -> None:
        """写入账本明文与数据密钥（key 为 None 时只写账本）。"""
        self.path.mkdir(parents=True, exist_ok=True)
        _write_private(self.unlocked_path, dump_wallet(wallet))
        if key is not None:
            _write_private(self.key_path, bytes(key))
        logger.debug("[Session] 已写入会话缓存：%s", self.path)

    def load(self) -> tuple[Wallet, bytearray | None]:
        """
        读取会话缓存。

        Returns:
            (账本, 数据密钥)；密钥文件缺失或长度不对时为 None。

        Raises:
            FileNotFoundError: 缓存不存在。
        """
        wallet = load_wallet(self.unlocked_path.read_bytes())
        return wallet, self.load_key()

    def load_key(self) -> bytearray | None:
        """
        只读取数据密钥，不解析 vault.unlocked。

        Returns:
            数据密钥；文件缺失或长度不对时为 None。
        """
        if not self.has_key():
            return None
        raw = self.key_path.read_bytes()
        if len(raw) != KEY_LENGTH:
            logger.warning("[Session] session.key 长度异常（%d 字节），已忽略", len(raw))
            return None
        return bytearray(raw)

    def clear(self) -> bool:
        """
        删除缓存文件。

        Returns:
            是否删除了任何文件。
        """
        removed = False
        for p in (self.key_path, self.unlocked_path):
            if p.is_file():
                _shred(p)
                removed = True
        return removed


def _write_private(path: Path, data: bytes) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(data)
    # 已存在的文件不受 os.open 的 mode 影响
    os.chmod(path, 0o600)


def _shred(path: Path) -> None:
    size = path.stat().st_size
    with open(path, "r+b") as f:
        f.write(b"\0" * size)
        f.flush()
        os.fsync(f.fileno())
    path.unlink()
