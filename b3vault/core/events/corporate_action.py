"""
公司行动：合股（Grupamento）与拆股（Desdobramento）。

对指定 ticker 在生效日之前的交易按比例追溯调整：
- 合股 N:1：数量 ÷ N，单价 × N；
- 拆股 1:M：数量 × M，单价 ÷ M；
- 金额 = 新数量 × 新单价；数量/单价/金额均量化为 4 位小数；
- 调整后的交易是新记录（新指纹），id 保持不变；
- 生效日当天及之后的交易不变。

调整通过 Wallet.replace_assets 一次性提交，失败时账本保持原样。
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal

from b3vault.core.events.ratio import check_grouping_ratio, check_split_ratio
from b3vault.core.models import CorporateActionResult, Ratio, Trade
from b3vault.core.rules.fingerprint import refingerprint_trade
from b3vault.core.rules.precision import quantize_value
from b3vault.core.wallet import Wallet

logger = logging.getLogger(__name__)


def apply_grouping(wallet: Wallet, ticker: str, ratio: Ratio, event_date: date) -> CorporateActionResult:
    """
    合股：N 股旧股合并为 1 股。

    示例：10:1，生效日前 1000 股 @ 2.80 → 100 股 @ 28.00（金额 2800）。

    Raises:
        NotFoundError: 持仓不存在。
        ValidationError: 比例不满足 N:1（N >= 2）。
    """
    asset = wallet.get_asset(ticker)
    check_grouping_ratio(ratio)
    factor = Decimal(ratio.from_qty) / Decimal(ratio.to_qty)
    return _apply(wallet, asset.ticker, ratio, event_date, quantity_factor=1 / factor, price_factor=factor)


def apply_split(wallet: Wallet, ticker: str, ratio: Ratio, event_date: date) -> CorporateActionResult:
    """
    拆股：1 股拆为 M 股。

    Raises:
        NotFoundError: 持仓不存在。
        ValidationError: 比例不满足 1:M（M >= 2）。
    """
    asset = wallet.get_asset(ticker)
    check_split_ratio(ratio)
    factor = Decimal(ratio.to_qty) / Decimal(ratio.from_qty)
    return _apply(wallet, asset.ticker, ratio, event_date, quantity_factor=factor, price_factor=1 / factor)


def _apply(
    wallet: Wallet,
    ticker: str,
    ratio: Ratio,
    event_date: date,
    *,
    quantity_factor: Decimal,
    price_factor: Decimal,
) -> CorporateActionResult:
    asset = wallet.get_asset(ticker)
    quantity_before = asset.quantity
    average_cost_before = asset.average_cost

    # 1. 生成调整后的交易列表（生效日前的交易替换为新记录）
    adjusted = 0
    trades: list[Trade] = []
    for t in asset.trades:
        if t.date < event_date:
            trades.append(_scale_trade(t, quantity_factor, price_factor))
            adjusted += 1
        else:
            trades.append(t)

    # 2. 整体提交（无调整时不改动账本）
    if adjusted:
        wallet.replace_assets({ticker: replace(asset, trades=trades)})
    logger.debug("[Events] %s %s 生效日 %s：调整 %d 笔", ticker, ratio, event_date, adjusted)

    after = wallet.get_asset(ticker)
    return CorporateActionResult(
        ticker=ticker,
        ratio=ratio,
        event_date=event_date,
        trades_adjusted=adjusted,
        quantity_before=quantity_before,
        quantity_after=after.quantity,
        average_cost_before=average_cost_before,
        average_cost_after=after.average_cost,
    )


def _scale_trade(trade: Trade, quantity_factor: Decimal, price_factor: Decimal) -> Trade:
    quantity = quantize_value(trade.quantity * quantity_factor)
    price = quantize_value(trade.price * price_factor)
    return refingerprint_trade(
        trade,
        quantity=quantity,
        price=price,
        amount=quantize_value(quantity * price),
    )
