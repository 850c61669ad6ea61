from __future__ import annotations

from datetime import date

from b3vault.core.dependency import dependency
from b3vault.core.events import apply_grouping, apply_split, parse_grouping_ratio, parse_split_ratio
from b3vault.core.log import log
from b3vault.core.models import CorporateActionResult, Ratio
from b3vault.data.vault.session_cache import SessionCache
from b3vault.data.vault.vault_store import VaultStore
from b3vault.flows.wallet import persist, unlocked_session


@dependency
def apply_grouping_event(
    *,
    ticker: str,
    ratio: Ratio | str,
    event_date: date,
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> CorporateActionResult:
    """
    登记合股（Grupamento）并追溯调整生效日之前的交易。

    Args:
        ticker: 持仓代码。
        ratio: 比例（"10:1" 或 Ratio）。
        event_date: 生效日（当天及之后的交易不调整）。

    Raises:
        NotFoundError: 持仓不存在。
        ValidationError: 比例不满足 N:1（N >= 2）。
    """
    if isinstance(ratio, str):
        ratio = parse_grouping_ratio(ratio)

    with unlocked_session(password, vault_store, session_cache) as vault:
        result = apply_grouping(vault.wallet, ticker, ratio, event_date)
        if result.trades_adjusted:
            persist(vault, vault_store=vault_store, session_cache=session_cache)

    _log_result("grouping", result)
    return result


@dependency
def apply_split_event(
    *,
    ticker: str,
    ratio: Ratio | str,
    event_date: date,
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> CorporateActionResult:
    """
    登记拆股（Desdobramento）并追溯调整生效日之前的交易。

    Raises:
        NotFoundError: 持仓不存在。
        ValidationError: 比例不满足 1:M（M >= 2）。
    """
    if isinstance(ratio, str):
        ratio = parse_split_ratio(ratio)

    with unlocked_session(password, vault_store, session_cache) as vault:
        result = apply_split(vault.wallet, ticker, ratio, event_date)
        if result.trades_adjusted:
            persist(vault, vault_store=vault_store, session_cache=session_cache)

    _log_result("split", result)
    return result


def _log_result(kind: str, result: CorporateActionResult) -> None:
    if not result.trades_adjusted:
        log(f"[Events:{kind}] {result.ticker}：生效日 {result.event_date} 之前没有交易，未做调整")
        return
    log(
        f"[Events:{kind}] {result.ticker} {result.ratio}：调整 {result.trades_adjusted} 笔，"
        f"持仓 {result.quantity_before} → {result.quantity_after}，"
        f"均价 {result.average_cost_before} → {result.average_cost_after}"
    )
