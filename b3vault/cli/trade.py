from __future__ import annotations

import argparse
import sys
from datetime import date
from decimal import Decimal

from rich.console import Console
from rich.table import Table

from b3vault.cli.password import session_password
from b3vault.core.config import is_debug
from b3vault.core.errors import LedgerError, VaultError
from b3vault.core.log import log, setup_logging
from b3vault.core.models import Trade, TradeSide
from b3vault.core.rules.precision import quantize_value
from b3vault.core.rules.tickers import normalize_ticker
from b3vault.flows.trade import add_trade, list_trades

console = Console()


def _parse_args() -> argparse.Namespace:
    """解析命令行参数。"""
    parser = argparse.ArgumentParser(
        prog="python -m b3vault.cli.trade",
        description="手动录入与查询交易",
    )
    parser.add_argument("--debug", action="store_true", help="启用调试日志")
    subparsers = parser.add_subparsers(dest="command", required=True, help="子命令")

    # ========== buy / sell 子命令 ==========
    for name, help_text in (("buy", "录入买入"), ("sell", "录入卖出")):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("--ticker", required=True, help="代码，如 ITSA4")
        p.add_argument("--quantity", required=True, type=Decimal, help="数量")
        p.add_argument("--price", required=True, type=Decimal, help="单价（R$）")
        p.add_argument("--amount", type=Decimal, help="金额（默认 数量 × 单价）")
        p.add_argument("--institution", default="", help="券商/托管机构")
        p.add_argument("--date", help="交易日期（YYYY-MM-DD，默认今天）")
        p.add_argument(
            "--keep-fractional",
            action="store_true",
            help="保留碎股后缀 F（默认规范化为标准代码）",
        )

    # ========== list 子命令 ==========
    list_parser = subparsers.add_parser("list", help="查询交易记录")
    list_parser.add_argument("--ticker", help="按代码过滤")

    return parser.parse_args()


def _build_trade(args: argparse.Namespace, side: TradeSide) -> Trade:
    ticker = args.ticker.strip().upper() if args.keep_fractional else normalize_ticker(args.ticker)
    amount = args.amount if args.amount is not None else quantize_value(args.quantity * args.price)
    return Trade(
        date=date.fromisoformat(args.date) if args.date else date.today(),
        side=side,
        institution=args.institution,
        ticker=ticker,
        quantity=args.quantity,
        price=args.price,
        amount=amount,
    )


def _do_add(args: argparse.Namespace, side: TradeSide) -> int:
    """执行 buy/sell 命令。

    Returns:
        退出码：0=成功；3=保险库错误；4=参数错误；5=其他失败。
    """
    try:
        # 1. 解析参数
        trade = _build_trade(args, side)

        # 2. 输出操作提示
        log(f"[Trade:{args.command}] {trade.ticker} {trade.quantity} @ {trade.price} ({trade.date})")

        # 3. 调用 Flow 函数
        stored = add_trade(trade=trade, password=session_password())

        # 4. 输出结果
        log(f"✅ 已录入：#{stored.id} 指纹 {stored.fingerprint[:12]}")
        return 0
    except (ValueError, LedgerError) as err:
        log(f"❌ 录入失败：{err}")
        return 4
    except VaultError as err:
        log(f"❌ 录入失败：{err}")
        return 3
    except Exception as err:  # noqa: BLE001
        log(f"❌ 录入交易失败：{err}")
        return 5


def _do_list(args: argparse.Namespace) -> int:
    """执行 list 命令。"""
    try:
        trades = list_trades(ticker=args.ticker, password=session_password())
        if not trades:
            log("（无交易记录）")
            return 0

        table = Table(title=f"交易记录（{len(trades)} 笔）")
        for col in ("日期", "方向", "代码", "数量", "单价", "金额", "机构"):
            table.add_column(col, justify="right" if col in ("数量", "单价", "金额") else "left")
        for t in trades:
            side = "[green]买入[/]" if t.is_buy else "[red]卖出[/]"
            table.add_row(
                t.date.isoformat(), side, t.ticker, str(t.quantity), str(t.price), str(t.amount), t.institution
            )
        console.print(table)
        return 0
    except VaultError as err:
        log(f"❌ 查询失败：{err}")
        return 3
    except Exception as err:  # noqa: BLE001
        log(f"❌ 查询交易失败：{err}")
        return 5


def main() -> int:
    """
    交易管理 CLI。

    Returns:
        退出码：0=成功；3=保险库错误；4=参数错误；5=其他失败。
    """
    args = _parse_args()
    setup_logging(args.debug or is_debug())

    if args.command == "buy":
        return _do_add(args, TradeSide.BUY)
    elif args.command == "sell":
        return _do_add(args, TradeSide.SELL)
    elif args.command == "list":
        return _do_list(args)
    else:
        log(f"❌ 未知命令：{args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
