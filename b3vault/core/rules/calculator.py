"""
持仓派生字段计算。

口径：
- 均价 = Σ(单价 × 数量) / Σ(数量)，仅统计买入，4 位小数；无买入时为 0；
- 投入资金 = Σ(金额)，仅统计买入，4 位小数；
- 持仓数量 = Σ买入数量 - Σ卖出数量，四舍五入为整数；
- 分配总额 = Σ(分配实收)，4 位小数。

卖出只影响持仓数量，不影响均价与投入资金。
所有函数均为纯函数，重复调用结果一致（合并后可安全重入）。
"""

from __future__ import annotations

from decimal import Decimal

from b3vault.core.models.asset import Asset
from b3vault.core.models.earning import Earning
from b3vault.core.models.trade import Trade
from b3vault.core.rules.precision import quantize_value, round_quantity

_ZERO = Decimal("0")


def calc_average_cost(trades: list[Trade]) -> Decimal:
    """按买入加权计算均价。"""
    total_cost = _ZERO
    total_quantity = _ZERO
    for t in trades:
        if t.is_buy:
            total_cost += t.price * t.quantity
            total_quantity += t.quantity

    if total_quantity == _ZERO:
        return quantize_value(_ZERO)
    return quantize_value(total_cost / total_quantity)


def calc_invested_capital(trades: list[Trade]) -> Decimal:
    """买入金额合计。"""
    return quantize_value(sum((t.amount for t in trades if t.is_buy), _ZERO))


def calc_quantity(trades: list[Trade]) -> int:
    """净持仓数量（整数）。"""
    net = _ZERO
    for t in trades:
        net += t.quantity if t.is_buy else -t.quantity
    return round_quantity(net)


def calc_total_earnings(earnings: list[Earning]) -> Decimal:
    """分配实收合计。"""
    return quantize_value(sum((e.total_value for e in earnings), _ZERO))


def recalculate_asset(asset: Asset) -> None:
    """
    重算持仓的全部派生字段。

    副作用：
        覆盖 asset 的 average_cost / invested_capital / quantity / total_earnings，
        分类标签与历史记录不受影响。
    """
    asset.average_cost = calc_average_cost(asset.trades)
    asset.invested_capital = calc_invested_capital(asset.trades)
    asset.quantity = calc_quantity(asset.trades)
    asset.total_earnings = calc_total_earnings(asset.earnings)
