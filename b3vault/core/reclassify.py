"""
持仓重新归类：碎股合并与认购权转换。

碎股合并（KLBN3F → KLBN3）：
- 目标存在：来源的全部交易与分配改写 ticker 后移入目标，删除来源；
- 目标不存在：merge_fractional_asset 拒绝（MergeTargetNotFoundError），
  只有 create_and_merge_fractional_asset 会新建目标并复制来源的分类标签。

认购权转换（如 MXRF12 → MXRF11）：
- 买入改写为母资产 ticker（认购价计入母资产均价）；
- 卖出直接丢弃（认购权转让不影响母资产持仓）；
- 分配移入母资产，删除认购权持仓。

所有变更通过 Wallet.replace_assets 一次性提交，失败时账本保持原样。
"""

from __future__ import annotations

import logging

from b3vault.core.errors import MergeTargetNotFoundError, ValidationError
from b3vault.core.models import Asset, MergeResult, SubscriptionResult
from b3vault.core.rules.fingerprint import refingerprint_earning, refingerprint_trade
from b3vault.core.rules.tickers import is_fractional_ticker, normalize_ticker
from b3vault.core.wallet import Wallet

logger = logging.getLogger(__name__)


def merge_fractional_asset(wallet: Wallet, fractional_ticker: str) -> MergeResult:
    """
    将碎股持仓合并到已存在的标准持仓。

    Raises:
        ValidationError: ticker 不带碎股后缀。
        NotFoundError: 来源持仓不存在。
        MergeTargetNotFoundError: 目标持仓不存在。
    """
    source, target_ticker = _resolve_fractional(wallet, fractional_ticker)
    if not wallet.has_asset(target_ticker):
        raise MergeTargetNotFoundError(source.ticker, target_ticker)
    return _merge_into(wallet, source, wallet.get_asset(target_ticker), created=False)


def create_and_merge_fractional_asset(wallet: Wallet, fractional_ticker: str) -> MergeResult:
    """
    新建标准持仓（复制来源的分类标签）后合并。

    目标已存在时等同于 merge_fractional_asset（target_created=False）。

    Raises:
        ValidationError: ticker 不带碎股后缀。
        NotFoundError: 来源持仓不存在。
    """
    source, target_ticker = _resolve_fractional(wallet, fractional_ticker)
    if wallet.has_asset(target_ticker):
        return _merge_into(wallet, source, wallet.get_asset(target_ticker), created=False)

    target = Asset(
        ticker=target_ticker,
        type=source.type,
        subtype=source.subtype,
        segment=source.segment,
        subscription_of=source.subscription_of,
    )
    return _merge_into(wallet, source, target, created=True)


def convert_subscription_to_parent(wallet: Wallet, ticker: str, parent_ticker: str) -> SubscriptionResult:
    """
    将认购权持仓转换为母资产持仓。

    Raises:
        ValidationError: 认购权与母资产 ticker 相同。
        NotFoundError: 认购权或母资产持仓不存在。
    """
    if ticker == parent_ticker:
        raise ValidationError(f"认购权 {ticker} 与母资产不能相同")
    subscription = wallet.get_asset(ticker)
    parent = wallet.get_asset(parent_ticker)

    quantity_before = parent.quantity
    average_cost_before = parent.average_cost

    # 1. 买入改写 ticker，卖出丢弃
    purchases = [refingerprint_trade(t, ticker=parent_ticker) for t in subscription.trades if t.is_buy]
    discarded = len(subscription.trades) - len(purchases)

    # 2. 分配移入母资产
    earnings = [refingerprint_earning(e, ticker=parent_ticker) for e in subscription.earnings]

    # 3. 整体提交
    new_parent = _copy_with(parent, trades=parent.trades + purchases, earnings=parent.earnings + earnings)
    wallet.replace_assets({ticker: None, parent_ticker: new_parent})

    after = wallet.get_asset(parent_ticker)
    logger.debug(
        "[Reclassify] 认购权 %s → %s：转换买入 %d 笔，丢弃卖出 %d 笔",
        ticker,
        parent_ticker,
        len(purchases),
        discarded,
    )
    return SubscriptionResult(
        ticker=ticker,
        parent_ticker=parent_ticker,
        purchases_converted=len(purchases),
        sales_discarded=discarded,
        earnings_moved=len(earnings),
        parent_quantity_before=quantity_before,
        parent_quantity_after=after.quantity,
        parent_average_cost_before=average_cost_before,
        parent_average_cost_after=after.average_cost,
    )


def _resolve_fractional(wallet: Wallet, fractional_ticker: str) -> tuple[Asset, str]:
    if not is_fractional_ticker(fractional_ticker):
        raise ValidationError(f"{fractional_ticker} 不是碎股代码（应以 F 结尾）")
    source = wallet.get_asset(fractional_ticker)
    return source, normalize_ticker(fractional_ticker)


def _merge_into(wallet: Wallet, source: Asset, target: Asset, *, created: bool) -> MergeResult:
    quantity_before = target.quantity

    trades = [refingerprint_trade(t, ticker=target.ticker) for t in source.trades]
    earnings = [refingerprint_earning(e, ticker=target.ticker) for e in source.earnings]
    new_target = _copy_with(target, trades=target.trades + trades, earnings=target.earnings + earnings)
    wallet.replace_assets({source.ticker: None, target.ticker: new_target})

    after = wallet.get_asset(target.ticker)
    logger.debug("[Reclassify] 碎股 %s → %s：交易 %d 笔，分配 %d 条", source.ticker, target.ticker, len(trades), len(earnings))
    return MergeResult(
        source_ticker=source.ticker,
        target_ticker=target.ticker,
        trades_moved=len(trades),
        earnings_moved=len(earnings),
        target_created=created,
        target_quantity_before=quantity_before,
        target_quantity_after=after.quantity,
    )


def _copy_with(asset: Asset, *, trades, earnings) -> Asset:
    return Asset(
        ticker=asset.ticker,
        trades=list(trades),
        earnings=list(earnings),
        type=asset.type,
        subtype=asset.subtype,
        segment=asset.segment,
        subscription_of=asset.subscription_of,
    )
