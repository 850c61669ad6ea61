"""测试数据构造。"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from b3vault.core.models import Earning, EarningType, Trade, TradeSide

PASSWORD = "correct horse battery"


def make_trade(
    ticker: str = "ITSA4",
    quantity: str = "100",
    price: str = "10.00",
    *,
    side: TradeSide = TradeSide.BUY,
    day: date = date(2024, 1, 10),
    institution: str = "XP INVESTIMENTOS",
    amount: str | None = None,
) -> Trade:
    q, p = Decimal(quantity), Decimal(price)
    return Trade(
        date=day,
        side=side,
        institution=institution,
        ticker=ticker,
        quantity=q,
        price=p,
        amount=Decimal(amount) if amount is not None else q * p,
    )


def make_earning(
    ticker: str = "ITSA4",
    total: str = "12.50",
    *,
    type: EarningType = EarningType.DIVIDEND,
    day: date = date(2024, 3, 1),
    quantity: str = "100",
    unit_value: str = "0.125",
) -> Earning:
    return Earning(
        date=day,
        type=type,
        ticker=ticker,
        quantity=Decimal(quantity),
        unit_value=Decimal(unit_value),
        total_value=Decimal(total),
    )
