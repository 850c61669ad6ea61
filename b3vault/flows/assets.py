from __future__ import annotations

from b3vault.core.dependency import dependency
from b3vault.core.log import log
from b3vault.core.models import Asset, MergeResult, SubscriptionResult
from b3vault.core.reclassify import (
    convert_subscription_to_parent,
    create_and_merge_fractional_asset,
    merge_fractional_asset,
)
from b3vault.data.vault.session_cache import SessionCache
from b3vault.data.vault.vault_store import VaultStore
from b3vault.flows.wallet import persist, unlocked_session


@dependency
def assets_overview(
    *,
    include_sold: bool = False,
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> dict[tuple[str, str], list[Asset]]:
    """
    按 (type, segment) 分组的持仓视图。

    Args:
        include_sold: 是否包含已全部卖出的持仓。
    """
    with unlocked_session(password, vault_store, session_cache) as vault:
        return vault.wallet.group_by_type_and_segment(active_only=not include_sold)


@dependency
def sold_assets(
    *,
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> list[Asset]:
    """已全部卖出（quantity == 0）的持仓，按 ticker 排序。"""
    with unlocked_session(password, vault_store, session_cache) as vault:
        return list(vault.wallet.sold_assets().values())


@dependency
def merge_fractional(
    *,
    ticker: str,
    create_target: bool = False,
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> MergeResult:
    """
    碎股持仓合并到标准持仓。

    Args:
        ticker: 碎股代码（以 F 结尾）。
        create_target: 目标不存在时是否新建（复制来源分类标签）。

    Raises:
        ValidationError: 不是碎股代码。
        NotFoundError: 来源不存在。
        MergeTargetNotFoundError: 目标不存在且 create_target=False。
    """
    with unlocked_session(password, vault_store, session_cache) as vault:
        if create_target:
            result = create_and_merge_fractional_asset(vault.wallet, ticker)
        else:
            result = merge_fractional_asset(vault.wallet, ticker)
        persist(vault, vault_store=vault_store, session_cache=session_cache)

    log(
        f"[Assets:merge] {result.source_ticker} → {result.target_ticker}："
        f"交易 {result.trades_moved} 笔，分配 {result.earnings_moved} 条，"
        f"持仓 {result.target_quantity_before} → {result.target_quantity_after}"
    )
    return result


@dependency
def convert_subscription(
    *,
    ticker: str,
    parent_ticker: str,
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> SubscriptionResult:
    """
    认购权转换为母资产（买入转入，卖出丢弃）。

    Raises:
        ValidationError: ticker 与 parent_ticker 相同。
        NotFoundError: 认购权或母资产不存在。
    """
    with unlocked_session(password, vault_store, session_cache) as vault:
        result = convert_subscription_to_parent(vault.wallet, ticker, parent_ticker)
        persist(vault, vault_store=vault_store, session_cache=session_cache)

    log(
        f"[Assets:subscription] {ticker} → {parent_ticker}："
        f"转换买入 {result.purchases_converted} 笔，丢弃卖出 {result.sales_discarded} 笔"
    )
    return result


@dependency
def set_classification(
    *,
    ticker: str,
    type: str | None = None,
    subtype: str | None = None,
    segment: str | None = None,
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> Asset:
    """
    修改持仓分类标签（None 表示保持不变）。

    Raises:
        NotFoundError: 持仓不存在。
    """
    with unlocked_session(password, vault_store, session_cache) as vault:
        asset = vault.wallet.set_classification(ticker, type=type, subtype=subtype, segment=segment)
        persist(vault, vault_store=vault_store, session_cache=session_cache)

    log(f"[Assets:classify] {ticker}：{asset.type} / {asset.subtype or '-'} / {asset.segment or '-'}")
    return asset


@dependency
def mark_subscription(
    *,
    ticker: str,
    parent_ticker: str | None,
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> Asset:
    """标记（或以 None 取消）认购权与母资产的关联。"""
    with unlocked_session(password, vault_store, session_cache) as vault:
        asset = vault.wallet.mark_subscription(ticker, parent_ticker)
        persist(vault, vault_store=vault_store, session_cache=session_cache)
    return asset
