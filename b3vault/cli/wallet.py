from __future__ import annotations

import argparse
import sys

from b3vault.cli.password import read_password
from b3vault.core.config import is_debug
from b3vault.core.errors import LedgerError, VaultError
from b3vault.core.log import log, setup_logging
from b3vault.flows.wallet import create_wallet, lock_wallet, open_wallet, wallet_status


def _parse_args() -> argparse.Namespace:
    """解析命令行参数。"""
    parser = argparse.ArgumentParser(
        prog="python -m b3vault.cli.wallet",
        description="加密保险库管理（目录由 B3VAULT_DIR 指定，默认 data/wallet）",
    )
    parser.add_argument("--debug", action="store_true", help="启用调试日志")
    subparsers = parser.add_subparsers(dest="command", required=True, help="子命令")

    subparsers.add_parser("create", help="创建空保险库（密码至少 12 个字符）")
    subparsers.add_parser("open", help="解锁保险库并开启会话")
    subparsers.add_parser("lock", help="锁定：删除会话缓存")
    subparsers.add_parser("status", help="查看保险库与会话状态")

    return parser.parse_args()


def _do_create() -> int:
    """执行 create 命令。

    Returns:
        退出码：0=成功；3=保险库错误；4=参数错误；5=其他失败。
    """
    try:
        password = read_password(confirm=True)
        vault = create_wallet(password=password)
        log(f"✅ 保险库已创建并解锁：{vault.path}")
        log("⚠️  会话缓存为明文，使用完毕请执行 wallet lock")
        vault.lock()
        return 0
    except (ValueError, LedgerError) as err:
        log(f"❌ 创建失败：{err}")
        return 4
    except VaultError as err:
        log(f"❌ 创建失败：{err}")
        return 3
    except Exception as err:  # noqa: BLE001
        log(f"❌ 创建保险库失败：{err}")
        return 5


def _do_open() -> int:
    """执行 open 命令。

    Returns:
        退出码：0=成功；3=密码错误/文件损坏；5=其他失败。
    """
    try:
        log("[Wallet:open] 正在派生密钥（约需 1 秒）…")
        vault = open_wallet(password=read_password())
        log(f"✅ 已解锁：{vault.path}")
        vault.lock()
        return 0
    except (ValueError, LedgerError) as err:
        log(f"❌ 解锁失败：{err}")
        return 4
    except VaultError as err:
        log(f"❌ 解锁失败：{err}")
        return 3
    except Exception as err:  # noqa: BLE001
        log(f"❌ 解锁保险库失败：{err}")
        return 5


def _do_lock() -> int:
    """执行 lock 命令。"""
    try:
        lock_wallet()
        return 0
    except Exception as err:  # noqa: BLE001
        log(f"❌ 锁定失败：{err}")
        return 5


def _do_status() -> int:
    """执行 status 命令。"""
    try:
        status = wallet_status()
        if not status.exists:
            log(f"（{status.path} 下没有保险库，请先执行 wallet create）")
            return 0

        meta = status.metadata
        log(f"保险库：{status.path}")
        log(f"  格式 {meta.version} | {meta.algorithm} | {meta.kdf}")
        if status.session_open:
            log(f"  🔓 会话已打开：{status.trades} 笔交易，{status.assets} 个持仓")
        else:
            log("  🔒 已锁定")
        return 0
    except VaultError as err:
        log(f"❌ 读取状态失败：{err}")
        return 3
    except Exception as err:  # noqa: BLE001
        log(f"❌ 读取状态失败：{err}")
        return 5


def main() -> int:
    """
    保险库管理 CLI。

    Returns:
        退出码：0=成功；3=保险库错误；4=参数错误；5=其他失败。
    """
    # 1. 解析参数
    args = _parse_args()
    setup_logging(args.debug or is_debug())

    # 2. 分发命令
    if args.command == "create":
        return _do_create()
    elif args.command == "open":
        return _do_open()
    elif args.command == "lock":
        return _do_lock()
    elif args.command == "status":
        return _do_status()
    else:
        log(f"❌ 未知命令：{args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
