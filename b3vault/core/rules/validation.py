"""
入账前的记录校验。

校验在修改任何账本状态之前执行；失败抛出 ValidationError。
通过校验的记录会被规范化：
- 方向/类别统一为枚举值；
- 数量、价格、金额量化为 4 位小数（与序列化口径一致，指纹在此之后计算）。
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from b3vault.core.errors import ValidationError
from b3vault.core.models.earning import Earning, EarningType
from b3vault.core.models.trade import Trade, TradeSide
from b3vault.core.rules.precision import quantize_value

_ZERO = Decimal("0")


def _positive_value(value: Decimal, field_name: str, ticker: str) -> Decimal:
    """量化为 4 位小数并要求结果 > 0（NaN / Infinity 视为无效）。"""
    label = ticker or "<空 ticker>"
    if not isinstance(value, Decimal) or not value.is_finite():
        raise ValidationError(f"{label}：{field_name} 必须是有限数值（当前 {value}）")
    quantized = quantize_value(value)
    if quantized <= _ZERO:
        raise ValidationError(f"{label}：{field_name} 必须大于 0（当前 {value}）")
    return quantized


def validate_trade(trade: Trade) -> Trade:
    """
    校验交易记录。

    规则：
    - ticker 非空；
    - quantity / price / amount 为有限数值，量化到 4 位小数后均 > 0；
    - side 必须是 Buy 或 Sell。

    Returns:
        规范化后的交易（side 为 TradeSide，数值为 4 位小数）。

    Raises:
        ValidationError: 任一规则不满足。
    """
    if not trade.ticker or not trade.ticker.strip():
        raise ValidationError("ticker 不能为空")

    try:
        side = TradeSide(trade.side)
    except ValueError:
        raise ValidationError(
            f"{trade.ticker}：交易方向必须是 'Buy' 或 'Sell'（当前 {trade.side!r}）"
        ) from None

    return replace(
        trade,
        side=side,
        quantity=_positive_value(trade.quantity, "quantity", trade.ticker),
        price=_positive_value(trade.price, "price", trade.ticker),
        amount=_positive_value(trade.amount, "amount", trade.ticker),
    )


def validate_earning(earning: Earning) -> Earning:
    """
    校验分配记录。

    规则：
    - ticker 非空；
    - type 为 Income / Dividend / TaxAdvantagedInterest / Redemption 之一；
    - quantity / unit_value / total_value 为有限数值，量化到 4 位小数后均 > 0。

    Returns:
        规范化后的分配（type 为 EarningType，数值为 4 位小数）。

    Raises:
        ValidationError: 任一规则不满足。
    """
    if not earning.ticker or not earning.ticker.strip():
        raise ValidationError("ticker 不能为空")

    try:
        earning_type = EarningType(earning.type)
    except ValueError:
        allowed = " / ".join(t.value for t in EarningType)
        raise ValidationError(
            f"{earning.ticker}：分配类型必须是 {allowed}（当前 {earning.type!r}）"
        ) from None

    return replace(
        earning,
        type=earning_type,
        quantity=_positive_value(earning.quantity, "quantity", earning.ticker),
        unit_value=_positive_value(earning.unit_value, "unit_value", earning.ticker),
        total_value=_positive_value(earning.total_value, "total_value", earning.ticker),
    )
