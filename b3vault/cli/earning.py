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
from b3vault.core.models import Earning, EarningType
from b3vault.core.rules.precision import quantize_value
from b3vault.core.rules.tickers import normalize_ticker
from b3vault.flows.trade import (
    add_earning,
    annual_earnings_report,
    earnings_summary,
    monthly_earnings_report,
)

console = Console()

_TYPE_LABELS = {
    EarningType.INCOME: "Rendimento",
    EarningType.DIVIDEND: "Dividendo",
    EarningType.TAX_ADVANTAGED_INTEREST: "Juros Sobre Capital Próprio",
    EarningType.REDEMPTION: "Resgate",
}


def _parse_args() -> argparse.Namespace:
    """解析命令行参数。"""
    parser = argparse.ArgumentParser(
        prog="python -m b3vault.cli.earning",
        description="分配（股息/JCP/收益/赎回）录入、汇总与收入报表",
    )
    parser.add_argument("--debug", action="store_true", help="启用调试日志")
    subparsers = parser.add_subparsers(dest="command", required=True, help="子命令")

    # ========== add 子命令 ==========
    add_parser = subparsers.add_parser("add", help="录入一条分配")
    add_parser.add_argument("--ticker", required=True, help="代码")
    add_parser.add_argument(
        "--type",
        required=True,
        choices=[t.value for t in EarningType],
        help="分配类别",
    )
    add_parser.add_argument("--quantity", required=True, type=Decimal, help="持有数量")
    add_parser.add_argument("--unit-value", required=True, type=Decimal, help="每股金额")
    add_parser.add_argument("--total", type=Decimal, help="实收合计（默认 数量 × 每股金额）")
    add_parser.add_argument("--date", help="日期（YYYY-MM-DD，默认今天）")

    # ========== summary 子命令 ==========
    summary_parser = subparsers.add_parser("summary", help="按类别汇总")
    summary_parser.add_argument("--year", type=int, help="仅统计该年度")

    # ========== report 子命令 ==========
    report_parser = subparsers.add_parser("report", help="收入报表（默认年度报表）")
    report_parser.add_argument("--year", type=int, help="输出该年度的月度报表")

    return parser.parse_args()


def _do_add(args: argparse.Namespace) -> int:
    """执行 add 命令。

    Returns:
        退出码：0=成功；3=保险库错误；4=参数错误；5=其他失败。
    """
    try:
        # 1. 解析参数
        total = args.total if args.total is not None else quantize_value(args.quantity * args.unit_value)
        earning = Earning(
            date=date.fromisoformat(args.date) if args.date else date.today(),
            type=EarningType(args.type),
            ticker=normalize_ticker(args.ticker),
            quantity=args.quantity,
            unit_value=args.unit_value,
            total_value=total,
        )

        # 2. 调用 Flow 函数
        stored = add_earning(earning=earning, password=session_password())

        # 3. 输出结果
        log(f"✅ 已录入：{_TYPE_LABELS[stored.type]} {stored.ticker} R$ {stored.total_value}")
        return 0
    except (ValueError, LedgerError) as err:
        log(f"❌ 录入失败：{err}")
        return 4
    except VaultError as err:
        log(f"❌ 录入失败：{err}")
        return 3
    except Exception as err:  # noqa: BLE001
        log(f"❌ 录入分配失败：{err}")
        return 5


def _do_summary(args: argparse.Namespace) -> int:
    """执行 summary 命令。"""
    try:
        summary = earnings_summary(year=args.year, password=session_password())

        table = Table(title=f"分配汇总（{args.year or '全部年度'}）")
        table.add_column("类别")
        table.add_column("合计（R$）", justify="right")
        for earning_type, total in summary.items():
            table.add_row(_TYPE_LABELS[earning_type], str(total))
        table.add_row("[bold]合计[/]", f"[bold]{sum(summary.values(), Decimal('0'))}[/]")
        console.print(table)
        return 0
    except VaultError as err:
        log(f"❌ 查询失败：{err}")
        return 3
    except Exception as err:  # noqa: BLE001
        log(f"❌ 汇总分配失败：{err}")
        return 5


def _do_report(args: argparse.Namespace) -> int:
    """
    执行 report 命令。

    - 未指定 --year：每年合计、总计与年均；
    - 指定 --year：该年逐月合计（只列有收入的月份）、全年合计与月均。
    """
    try:
        if args.year is None:
            report = annual_earnings_report(password=session_password())
            table = Table(title="年度收入报表")
            table.add_column("年度")
            label, average_label = "总计", "年均"
        else:
            report = monthly_earnings_report(year=args.year, password=session_password())
            table = Table(title=f"{args.year} 年月度收入报表")
            table.add_column("月份")
            label, average_label = "全年合计", "月均（有收入的月份）"
        table.add_column("合计（R$）", justify="right")

        for period, total in report.periods.items():
            table.add_row(str(period) if report.year is None else f"{period} 月", str(total))
        table.add_row(f"[bold]{label}[/]", f"[bold]{report.total}[/]")
        table.add_row(average_label, str(report.average))
        console.print(table)

        if not report.periods:
            log("⚠️ 没有分配记录")
        return 0
    except VaultError as err:
        log(f"❌ 查询失败：{err}")
        return 3
    except Exception as err:  # noqa: BLE001
        log(f"❌ 生成收入报表失败：{err}")
        return 5


def main() -> int:
    """
    分配管理 CLI。

    Returns:
        退出码：0=成功；3=保险库错误；4=参数错误；5=其他失败。
    """
    args = _parse_args()
    setup_logging(args.debug or is_debug())

    if args.command == "add":
        return _do_add(args)
    elif args.command == "summary":
        return _do_summary(args)
    elif args.command == "report":
        return _do_report(args)
    else:
        log(f"❌ 未知命令：{args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
