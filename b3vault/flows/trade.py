from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from b3vault.core.dependency import dependency
from b3vault.core.log import log
from b3vault.core.models import AddResult, Earning, EarningsReport, EarningType, Trade
from b3vault.core.rules.precision import quantize_value
from b3vault.data.vault.session_cache import SessionCache
from b3vault.data.vault.vault_store import VaultStore
from b3vault.flows.wallet import persist, unlocked_session


@dependency
def add_trade(
    *,
    trade: Trade,
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> Trade:
    """
    手动录入一笔交易。

    Args:
        trade: 交易记录（fingerprint 可为空，入账时计算）。
        password: 无会话时用于解锁的密码。
        vault_store: 保险库存储（可选，自动注入）。
        session_cache: 会话缓存（可选，自动注入）。

    Returns:
        入账后的交易（带指纹与内部 id）。

    Raises:
        NotFoundError: 卖出的持仓不存在。
        InsufficientQuantityError: 卖出数量超过持仓。
        ValidationError: 字段校验失败。
        DuplicateError: 与已有交易重复。

    说明：
        卖出前先做持仓预检；任一检查失败时 vault.enc 不会被修改。
    """
    with unlocked_session(password, vault_store, session_cache) as vault:
        # 1. 卖出预检
        if not trade.is_buy:
            vault.wallet.can_sell(trade.ticker, trade.quantity)

        # 2. 入账并保存
        stored = vault.wallet.add_trade(trade)
        persist(vault, vault_store=vault_store, session_cache=session_cache)

    log(f"[Trade] 已录入：{stored.side} {stored.ticker} {stored.quantity} @ {stored.price}")
    return stored


@dependency
def import_trades(
    *,
    trades: Iterable[Trade],
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> AddResult:
    """
    批量导入交易（重复跳过计数，任一无效记录使整批放弃）。

    Raises:
        ValidationError: 存在无效记录，未导入任何记录。
    """
    with unlocked_session(password, vault_store, session_cache) as vault:
        result = vault.wallet.add_trades(trades)
        if result.added:
            persist(vault, vault_store=vault_store, session_cache=session_cache)

    log(f"[Trade] 导入完成：新增 {result.added} 笔，重复 {result.duplicates} 笔")
    return result


@dependency
def list_trades(
    *,
    ticker: str | None = None,
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> list[Trade]:
    """
    查询交易记录（按日期排序）。

    Args:
        ticker: 仅返回该 ticker 的交易；None 表示全部。
    """
    with unlocked_session(password, vault_store, session_cache) as vault:
        trades = [t for t in vault.wallet.transactions if ticker is None or t.ticker == ticker]
    return sorted(trades, key=lambda t: (t.date, t.id or 0))


@dependency
def add_earning(
    *,
    earning: Earning,
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> Earning:
    """
    手动录入一条分配（股息、JCP、收益、赎回）。

    Raises:
        ValidationError: 字段校验失败。
        DuplicateError: 与已有分配重复。
    """
    with unlocked_session(password, vault_store, session_cache) as vault:
        stored = vault.wallet.add_earning(earning)
        persist(vault, vault_store=vault_store, session_cache=session_cache)

    log(f"[Earning] 已录入：{stored.type} {stored.ticker} {stored.total_value}")
    return stored


@dependency
def import_earnings(
    *,
    earnings: Iterable[Earning],
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> AddResult:
    """批量导入分配，口径同 import_trades。"""
    with unlocked_session(password, vault_store, session_cache) as vault:
        result = vault.wallet.add_earnings(earnings)
        if result.added:
            persist(vault, vault_store=vault_store, session_cache=session_cache)

    log(f"[Earning] 导入完成：新增 {result.added} 条，重复 {result.duplicates} 条")
    return result


@dependency
def earnings_summary(
    *,
    year: int | None = None,
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> dict[EarningType, Decimal]:
    """按类别汇总分配实收（可限定年度）。"""
    with unlocked_session(password, vault_store, session_cache) as vault:
        return vault.wallet.earnings_summary(year)


@dependency
def annual_earnings_report(
    *,
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> EarningsReport:
    """
    年度收入报表：每年合计、总计与年均。

    年均 = 总计 / 有收入的年数。
    """
    with unlocked_session(password, vault_store, session_cache) as vault:
        periods = vault.wallet.earnings_by_year()
    return _build_report(None, periods)


@dependency
def monthly_earnings_report(
    *,
    year: int,
    password: str | None = None,
    vault_store: VaultStore | None = None,
    session_cache: SessionCache | None = None,
) -> EarningsReport:
    """
    月度收入报表：指定年度逐月合计、全年合计与月均。

    月均 = 全年合计 / 有收入的月数。
    """
    with unlocked_session(password, vault_store, session_cache) as vault:
        periods = vault.wallet.earnings_by_month(year)
    return _build_report(year, periods)


def _build_report(year: int | None, periods: dict[int, Decimal]) -> EarningsReport:
    total = sum(periods.values(), Decimal("0"))
    average = quantize_value(total / len(periods)) if periods else Decimal("0")
    return EarningsReport(year=year, periods=periods, total=quantize_value(total), average=average)
