"""
账本变更操作的结果对象。

只承载统计信息，供 CLI 展示与测试断言；不持有账本引用。
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True, slots=True)
class Ratio:
    """
    公司行动比例。

    - 合股（grouping）：from_qty:1，例如 10:1 表示 10 股旧股合并为 1 股；
    - 拆股（split）：1:to_qty，例如 1:2 表示 1 股拆为 2 股。
    """

    from_qty: int
    to_qty: int

    def __str__(self) -> str:
        return f"{self.from_qty}:{self.to_qty}"


@dataclass(slots=True)
class AddResult:
    """批量入账结果。"""

    added: int
    duplicates: int


@dataclass(slots=True)
class CorporateActionResult:
    """合股/拆股结果（前后持仓数量与均价对比）。"""

    ticker: str
    ratio: Ratio
    event_date: date
    trades_adjusted: int
    quantity_before: int
    quantity_after: int
    average_cost_before: Decimal
    average_cost_after: Decimal


@dataclass(slots=True)
class MergeResult:
    """碎股合并结果。"""

    source_ticker: str
    target_ticker: str
    trades_moved: int
    earnings_moved: int
    target_created: bool
    target_quantity_before: int
    target_quantity_after: int


@dataclass(slots=True)
class SubscriptionResult:
    """认购权转换结果。"""

    ticker: str
    parent_ticker: str
    purchases_converted: int
    sales_discarded: int
    earnings_moved: int
    parent_quantity_before: int
    parent_quantity_after: int
    parent_average_cost_before: Decimal
    parent_average_cost_after: Decimal


@dataclass(slots=True)
class EarningsReport:
    """
    分配收入报表。

    - year 为 None：年度报表，periods 为 {年份: 合计}，average 为年均（合计 / 有收入的年数）；
    - year 为具体年份：月度报表，periods 为 {月份: 合计}，只含有收入的月份，
      average 为这些月份的月均。

    无任何收入时 periods 为空，total 与 average 均为 0。
    """

    year: int | None
    periods: dict[int, Decimal]
    total: Decimal
    average: Decimal
