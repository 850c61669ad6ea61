from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class EarningType(str, Enum):
    """
    分配（收益）类别。

    - INCOME: 基金/FII 分配的收益（Rendimento）
    - DIVIDEND: 股息（Dividendo）
    - TAX_ADVANTAGED_INTEREST: 资本利息，税务优待（Juros Sobre Capital Próprio）
    - REDEMPTION: 退市/回购时的赎回款（Resgate）
    """

    INCOME = "Income"
    DIVIDEND = "Dividend"
    TAX_ADVANTAGED_INTEREST = "TaxAdvantagedInterest"
    REDEMPTION = "Redemption"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Earning:
    """
    分配记录（不可变）。

    quantity 为计息份额，unit_value 为每份金额，total_value 为实收总额；
    fingerprint 与 Trade 同口径，但只覆盖本类字段。
    """

    date: date
    type: EarningType
    ticker: str
    quantity: Decimal
    unit_value: Decimal
    total_value: Decimal
    fingerprint: str = ""
