from __future__ import annotations

import argparse
import sys

from rich.console import Console
from rich.table import Table

from b3vault.cli.password import session_password
from b3vault.core.config import is_debug
from b3vault.core.errors import LedgerError, MergeTargetNotFoundError, VaultError
from b3vault.core.log import log, setup_logging
from b3vault.core.models import Asset
from b3vault.flows.assets import (
    assets_overview,
    convert_subscription,
    merge_fractional,
    set_classification,
    sold_assets,
)

console = Console()


def _parse_args() -> argparse.Namespace:
    """解析命令行参数。"""
    parser = argparse.ArgumentParser(
        prog="python -m b3vault.cli.assets",
        description="持仓查看与重新归类",
    )
    parser.add_argument("--debug", action="store_true", help="启用调试日志")
    subparsers = parser.add_subparsers(dest="command", required=True, help="子命令")

    # ========== overview 子命令 ==========
    overview_parser = subparsers.add_parser("overview", help="按类型/板块分组查看当前持仓")
    overview_parser.add_argument("--all", action="store_true", help="包含已全部卖出的持仓")

    # ========== sold 子命令 ==========
    subparsers.add_parser("sold", help="查看已全部卖出的持仓")

    # ========== classify 子命令 ==========
    classify_parser = subparsers.add_parser("classify", help="设置分类标签")
    classify_parser.add_argument("--ticker", required=True, help="代码")
    classify_parser.add_argument("--type", help="类型（如 renda variável）")
    classify_parser.add_argument("--subtype", help="子类型（如 ações、fii）")
    classify_parser.add_argument("--segment", help="板块")

    # ========== merge 子命令 ==========
    merge_parser = subparsers.add_parser("merge", help="碎股持仓合并到标准代码（如 KLBN3F → KLBN3）")
    merge_parser.add_argument("--ticker", required=True, help="碎股代码（以 F 结尾）")
    merge_parser.add_argument("--create", action="store_true", help="目标不存在时新建（复制分类标签）")

    # ========== subscription 子命令 ==========
    sub_parser = subparsers.add_parser("subscription", help="认购权转换为母资产")
    sub_parser.add_argument("--ticker", required=True, help="认购权代码（如 MXRF12）")
    sub_parser.add_argument("--parent", required=True, help="母资产代码（如 MXRF11）")

    return parser.parse_args()


def _asset_table(title: str, assets: list[Asset]) -> Table:
    table = Table(title=title)
    table.add_column("代码")
    table.add_column("子类型")
    table.add_column("数量", justify="right")
    table.add_column("均价", justify="right")
    table.add_column("投入", justify="right")
    table.add_column("分配", justify="right")
    for a in assets:
        quantity = str(a.quantity) if a.quantity >= 0 else f"[red]{a.quantity}[/]"
        table.add_row(
            a.ticker,
            a.subtype or "-",
            quantity,
            str(a.average_cost),
            str(a.invested_capital),
            str(a.total_earnings),
        )
    return table


def _do_overview(args: argparse.Namespace) -> int:
    """执行 overview 命令。"""
    try:
        groups = assets_overview(include_sold=args.all, password=session_password())
        if not groups:
            log("（无持仓）")
            return 0
        for (asset_type, segment), assets in groups.items():
            console.print(_asset_table(f"{asset_type} / {segment or '未分类'}", assets))
        return 0
    except VaultError as err:
        log(f"❌ 查询失败：{err}")
        return 3
    except Exception as err:  # noqa: BLE001
        log(f"❌ 查询持仓失败：{err}")
        return 5


def _do_sold() -> int:
    """执行 sold 命令。"""
    try:
        assets = sold_assets(password=session_password())
        if not assets:
            log("（无已卖出持仓）")
            return 0
        console.print(_asset_table("已全部卖出", assets))
        return 0
    except VaultError as err:
        log(f"❌ 查询失败：{err}")
        return 3
    except Exception as err:  # noqa: BLE001
        log(f"❌ 查询持仓失败：{err}")
        return 5


def _do_classify(args: argparse.Namespace) -> int:
    """执行 classify 命令。"""
    try:
        if args.type is None and args.subtype is None and args.segment is None:
            raise ValueError("至少指定 --type / --subtype / --segment 之一")
        set_classification(
            ticker=args.ticker,
            type=args.type,
            subtype=args.subtype,
            segment=args.segment,
            password=session_password(),
        )
        return 0
    except (ValueError, LedgerError) as err:
        log(f"❌ 设置失败：{err}")
        return 4
    except VaultError as err:
        log(f"❌ 设置失败：{err}")
        return 3
    except Exception as err:  # noqa: BLE001
        log(f"❌ 设置分类失败：{err}")
        return 5


def _do_merge(args: argparse.Namespace) -> int:
    """执行 merge 命令。"""
    try:
        result = merge_fractional(ticker=args.ticker, create_target=args.create, password=session_password())
        if result.target_created:
            log(f"✅ 已新建 {result.target_ticker} 并完成合并")
        else:
            log(f"✅ 已合并到 {result.target_ticker}")
        return 0
    except MergeTargetNotFoundError as err:
        log(f"❌ {err}")
        log(f"   如确认需要新建，请追加 --create：assets merge --ticker {err.source_ticker} --create")
        return 4
    except (ValueError, LedgerError) as err:
        log(f"❌ 合并失败：{err}")
        return 4
    except VaultError as err:
        log(f"❌ 合并失败：{err}")
        return 3
    except Exception as err:  # noqa: BLE001
        log(f"❌ 合并碎股失败：{err}")
        return 5


def _do_subscription(args: argparse.Namespace) -> int:
    """执行 subscription 命令。"""
    try:
        result = convert_subscription(ticker=args.ticker, parent_ticker=args.parent, password=session_password())
        log(
            f"✅ {result.parent_ticker}：持仓 {result.parent_quantity_before} → {result.parent_quantity_after}，"
            f"均价 {result.parent_average_cost_before} → {result.parent_average_cost_after}"
        )
        return 0
    except (ValueError, LedgerError) as err:
        log(f"❌ 转换失败：{err}")
        return 4
    except VaultError as err:
        log(f"❌ 转换失败：{err}")
        return 3
    except Exception as err:  # noqa: BLE001
        log(f"❌ 转换认购权失败：{err}")
        return 5


def main() -> int:
    """
    持仓管理 CLI。

    Returns:
        退出码：0=成功；3=保险库错误；4=参数错误；5=其他失败。
    """
    args = _parse_args()
    setup_logging(args.debug or is_debug())

    if args.command == "overview":
        return _do_overview(args)
    elif args.command == "sold":
        return _do_sold()
    elif args.command == "classify":
        return _do_classify(args)
    elif args.command == "merge":
        return _do_merge(args)
    elif args.command == "subscription":
        return _do_subscription(args)
    else:
        log(f"❌ 未知命令：{args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
