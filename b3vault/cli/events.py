from __future__ import annotations

import argparse
import sys
from datetime import date

from b3vault.cli.password import session_password
from b3vault.core.config import is_debug
from b3vault.core.errors import LedgerError, VaultError
from b3vault.core.log import log, setup_logging
from b3vault.flows.events import apply_grouping_event, apply_split_event


def _parse_args() -> argparse.Namespace:
    """解析命令行参数。"""
    parser = argparse.ArgumentParser(
        prog="python -m b3vault.cli.events",
        description="登记公司行动（合股/拆股），追溯调整生效日前的交易",
    )
    parser.add_argument("--debug", action="store_true", help="启用调试日志")
    subparsers = parser.add_subparsers(dest="command", required=True, help="子命令")

    grouping_parser = subparsers.add_parser("grouping", help="合股（Grupamento），比例 N:1")
    grouping_parser.add_argument("--ticker", required=True, help="代码")
    grouping_parser.add_argument("--ratio", required=True, help="比例，如 10:1")
    grouping_parser.add_argument("--date", required=True, help="生效日（YYYY-MM-DD）")

    split_parser = subparsers.add_parser("split", help="拆股（Desdobramento），比例 1:M")
    split_parser.add_argument("--ticker", required=True, help="代码")
    split_parser.add_argument("--ratio", required=True, help="比例，如 1:2")
    split_parser.add_argument("--date", required=True, help="生效日（YYYY-MM-DD）")

    return parser.parse_args()


def _do_event(args: argparse.Namespace) -> int:
    """执行 grouping/split 命令。

    Returns:
        退出码：0=成功；3=保险库错误；4=参数错误；5=其他失败。
    """
    try:
        # 1. 解析参数
        event_date = date.fromisoformat(args.date)
        apply = apply_grouping_event if args.command == "grouping" else apply_split_event

        # 2. 调用 Flow 函数
        apply(ticker=args.ticker, ratio=args.ratio, event_date=event_date, password=session_password())
        return 0
    except (ValueError, LedgerError) as err:
        log(f"❌ 登记失败：{err}")
        return 4
    except VaultError as err:
        log(f"❌ 登记失败：{err}")
        return 3
    except Exception as err:  # noqa: BLE001
        log(f"❌ 登记公司行动失败：{err}")
        return 5


def main() -> int:
    """
    公司行动 CLI。

    Returns:
        退出码：0=成功；3=保险库错误；4=参数错误；5=其他失败。
    """
    args = _parse_args()
    setup_logging(args.debug or is_debug())

    if args.command in ("grouping", "split"):
        return _do_event(args)
    log(f"❌ 未知命令：{args.command}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
