"""
账本与保险库的异常分类。

约定：
- 账本类错误（LedgerError）在修改任何状态之前抛出，调用方捕获后账本保持不变；
- 保险库类错误（VaultError）描述密钥/文件层面的失败；
- 部分异常同时继承内建异常（ValueError/LookupError/RuntimeError），
  便于 CLI 按既有的 `except ValueError` 口径处理参数类错误。
"""

from __future__ import annotations


class LedgerError(Exception):
    """账本操作失败的基类。"""


class ValidationError(LedgerError, ValueError):
    """记录字段缺失或越界（ticker 为空、数量 <= 0、类型未知等）。"""


class DuplicateError(LedgerError):
    """指纹已存在于账本中（非致命，批量导入时仅计数）。"""

    def __init__(self, fingerprint: str, message: str | None = None) -> None:
        super().__init__(message or f"重复记录：fingerprint={fingerprint[:12]}…")
        self.fingerprint = fingerprint


class NotFoundError(LedgerError, LookupError):
    """ticker / 持仓不存在。"""

    def __str__(self) -> str:
        # LookupError 的默认 __str__ 会给单参数加引号，这里保持原文
        return str(self.args[0]) if self.args else ""


class MergeTargetNotFoundError(NotFoundError):
    """碎股合并的目标持仓不存在，需要调用方显式选择"创建并合并"。"""

    def __init__(self, source_ticker: str, target_ticker: str) -> None:
        super().__init__(
            f"目标持仓 {target_ticker} 不存在（来源 {source_ticker}），如需创建请使用 create_target"
        )
        self.source_ticker = source_ticker
        self.target_ticker = target_ticker


class InsufficientQuantityError(LedgerError, ValueError):
    """卖出数量超过当前持仓。"""


class VaultError(Exception):
    """保险库操作失败的基类。"""


class DecryptionError(VaultError):
    """AEAD 解密失败（标签不匹配或数据过短），不返回任何部分明文。"""


class PasswordPolicyError(VaultError, ValueError):
    """密码不满足最小长度要求。"""


class AuthenticationError(VaultError):
    """
    解锁失败：主密钥无法解开数据密钥。

    AEAD 校验失败时无法区分"密码错误"与"encrypted_key.bin 损坏"，
    因此消息中两者并列。
    """


class IntegrityError(VaultError):
    """数据密钥已验证通过，但 vault.enc 校验失败（文件损坏或被篡改）。"""


class StateError(VaultError, RuntimeError):
    """保险库已锁定（密钥已清除）时尝试保存。"""


class VaultNotFoundError(VaultError):
    """目录下不存在保险库文件。"""


class VaultExistsError(VaultError):
    """目标目录已存在保险库，拒绝覆盖。"""
