"""
账本（Wallet）。

职责：
- 持有全局交易列表、指纹 → 交易索引、ticker → 持仓映射；
- 提供入账（单条/批量）、卖出预检、查询与分类标签修改；
- 提供整体替换持仓的提交入口，供公司行动与资产合并使用；
- recalculate() 是派生字段的唯一写入入口，每次变更后全量重算。

不变量：
- 交易列表与指纹索引始终一一对应，只在本类的提交方法内同时修改；
- 每笔交易在入账时分配稳定 id，列表重建按 id 关联；
- 持仓存在 ⇔ 至少有一笔交易或分配引用该 ticker；
- 任一变更失败时账本保持原样（先规划、后提交）。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import replace
from decimal import Decimal
from types import MappingProxyType

from b3vault.core.errors import (
    DuplicateError,
    InsufficientQuantityError,
    NotFoundError,
    ValidationError,
)
from b3vault.core.models import AddResult, Asset, Earning, EarningType, Trade
from b3vault.core.rules.calculator import recalculate_asset
from b3vault.core.rules.fingerprint import with_earning_fingerprint, with_trade_fingerprint
from b3vault.core.rules.precision import quantize_value
from b3vault.core.rules.validation import validate_earning, validate_trade

logger = logging.getLogger(__name__)


class Wallet:
    """
    投资账本。

    示例：
        w = Wallet()
        w.add_trade(Trade(date(2024, 1, 10), TradeSide.BUY, "XP", "ITSA4",
                          Decimal("100"), Decimal("10.50"), Decimal("1050")))
        w.get_asset("ITSA4").quantity  # 100
    """

    def __init__(self) -> None:
        self._trades: list[Trade] = []
        self._trade_index: dict[str, Trade] = {}
        self._earning_index: dict[str, Earning] = {}
        self._assets: dict[str, Asset] = {}
        self._next_id = 1

    # ========== 构造 ==========

    @classmethod
    def from_records(
        cls,
        trades: Iterable[Trade],
        earnings: Iterable[Earning] = (),
    ) -> Wallet:
        """
        由已持久化的记录重建账本（不校验字段，重复指纹静默跳过）。

        用于从保险库/会话缓存加载；已存储的指纹原样保留。
        """
        w = cls()
        for t in trades:
            t = with_trade_fingerprint(t)
            if t.fingerprint in w._trade_index:
                logger.debug("[Wallet] 加载时跳过重复交易：%s", t.fingerprint[:12])
                continue
            w._append_trade(t)
        for e in earnings:
            e = with_earning_fingerprint(e)
            if e.fingerprint in w._earning_index:
                continue
            w._append_earning(e)
        w.recalculate()
        return w

    # ========== 只读视图 ==========

    @property
    def transactions(self) -> tuple[Trade, ...]:
        """按入账顺序排列的全部交易。"""
        return tuple(self._trades)

    @property
    def trade_index(self) -> Mapping[str, Trade]:
        """指纹 → 交易（只读）。"""
        return MappingProxyType(self._trade_index)

    @property
    def assets(self) -> Mapping[str, Asset]:
        """ticker → 持仓（只读映射，持仓对象本身由账本维护）。"""
        return MappingProxyType(self._assets)

    @property
    def earnings(self) -> tuple[Earning, ...]:
        """全部分配记录（按持仓 ticker 排列）。"""
        return tuple(e for ticker in sorted(self._assets) for e in self._assets[ticker].earnings)

    def has_asset(self, ticker: str) -> bool:
        return ticker in self._assets

    def get_asset(self, ticker: str) -> Asset:
        """
        按 ticker 读取持仓。

        Raises:
            NotFoundError: 持仓不存在。
        """
        asset = self._assets.get(ticker)
        if asset is None:
            raise NotFoundError(f"持仓 {ticker} 不存在")
        return asset

    # ========== 交易入账 ==========

    def add_trade(self, trade: Trade) -> Trade:
        """
        入账单笔交易。

        Returns:
            入账后的交易（带指纹与 id）。

        Raises:
            ValidationError: 字段校验失败。
            DuplicateError: 指纹已存在。
        """
        trade = with_trade_fingerprint(validate_trade(trade))
        if trade.fingerprint in self._trade_index:
            raise DuplicateError(trade.fingerprint, f"重复交易：{trade.ticker} {trade.date} {trade.side}")

        stored = self._append_trade(trade)
        self.recalculate()
        return stored

    def add_trades(self, trades: Iterable[Trade]) -> AddResult:
        """
        批量入账交易。

        口径：
        - 指纹已存在（含同批次内重复）→ 计入 duplicates，跳过；
        - 先校验、后计算指纹与判重；任一记录校验失败 → 整批放弃，不写入任何记录。

        Raises:
            ValidationError: 首条无效记录的错误（附带批内序号）。
        """
        staged: list[Trade] = []
        seen: set[str] = set()
        duplicates = 0

        for i, trade in enumerate(trades, start=1):
            try:
                trade = with_trade_fingerprint(validate_trade(trade))
            except ValidationError as err:
                raise ValidationError(f"第 {i} 条交易无效，整批未导入：{err}") from err
            if trade.fingerprint in self._trade_index or trade.fingerprint in seen:
                duplicates += 1
                continue
            staged.append(trade)
            seen.add(trade.fingerprint)

        for trade in staged:
            self._append_trade(trade)
        if staged:
            self.recalculate()

        logger.debug("[Wallet] 批量入账交易：added=%d duplicates=%d", len(staged), duplicates)
        return AddResult(added=len(staged), duplicates=duplicates)

    # ========== 分配入账 ==========

    def add_earning(self, earning: Earning) -> Earning:
        """
        入账单条分配。

        Raises:
            ValidationError: 字段校验失败。
            DuplicateError: 指纹已存在。
        """
        earning = with_earning_fingerprint(validate_earning(earning))
        if earning.fingerprint in self._earning_index:
            raise DuplicateError(
                earning.fingerprint, f"重复分配：{earning.ticker} {earning.date} {earning.type}"
            )

        self._append_earning(earning)
        self.recalculate()
        return earning

    def add_earnings(self, earnings: Iterable[Earning]) -> AddResult:
        """批量入账分配，口径与 add_trades 相同。"""
        staged: list[Earning] = []
        seen: set[str] = set()
        duplicates = 0

        for i, earning in enumerate(earnings, start=1):
            try:
                earning = with_earning_fingerprint(validate_earning(earning))
            except ValidationError as err:
                raise ValidationError(f"第 {i} 条分配无效，整批未导入：{err}") from err
            if earning.fingerprint in self._earning_index or earning.fingerprint in seen:
                duplicates += 1
                continue
            staged.append(earning)
            seen.add(earning.fingerprint)

        for earning in staged:
            self._append_earning(earning)
        if staged:
            self.recalculate()

        return AddResult(added=len(staged), duplicates=duplicates)

    # ========== 卖出预检 ==========

    def can_sell(self, ticker: str, quantity: Decimal) -> None:
        """
        检查是否有足够持仓可卖。

        Raises:
            NotFoundError: 持仓不存在。
            InsufficientQuantityError: 持仓数量小于卖出数量。
        """
        asset = self.get_asset(ticker)
        if Decimal(asset.quantity) < quantity:
            raise InsufficientQuantityError(
                f"{ticker} 持仓不足：当前 {asset.quantity} 股，尝试卖出 {quantity} 股"
            )

    # ========== 分类标签 ==========

    def set_classification(
        self,
        ticker: str,
        *,
        type: str | None = None,
        subtype: str | None = None,
        segment: str | None = None,
    ) -> Asset:
        """更新用户分类标签（None 表示保持不变），不触发重算。"""
        asset = self.get_asset(ticker)
        if type is not None:
            asset.type = type
        if subtype is not None:
            asset.subtype = subtype
        if segment is not None:
            asset.segment = segment
        return asset

    def mark_subscription(self, ticker: str, parent_ticker: str | None) -> Asset:
        """
        标记/取消认购权关联。

        Raises:
            ValidationError: 关联到自身。
            NotFoundError: 持仓不存在。
        """
        if parent_ticker == ticker:
            raise ValidationError(f"{ticker} 不能是自身的认购权")
        asset = self.get_asset(ticker)
        asset.subscription_of = parent_ticker or None
        return asset

    # ========== 查询 ==========

    def active_assets(self) -> dict[str, Asset]:
        """当前持有（quantity != 0）的持仓。"""
        return {k: a for k, a in sorted(self._assets.items()) if a.quantity != 0}

    def sold_assets(self) -> dict[str, Asset]:
        """已全部卖出（quantity == 0）但保留历史的持仓。"""
        return {k: a for k, a in sorted(self._assets.items()) if a.quantity == 0}

    def group_by_type_and_segment(self, *, active_only: bool = False) -> dict[tuple[str, str], list[Asset]]:
        """按 (type, segment) 分组，组内按 ticker 排序。"""
        groups: dict[tuple[str, str], list[Asset]] = {}
        for ticker in sorted(self._assets):
            asset = self._assets[ticker]
            if active_only and asset.quantity == 0:
                continue
            groups.setdefault((asset.type, asset.segment), []).append(asset)
        return groups

    def earnings_summary(self, year: int | None = None) -> dict[EarningType, Decimal]:
        """
        按分配类别汇总实收金额。

        Args:
            year: 仅统计该年度；None 表示全部。

        Returns:
            {EarningType: 合计}，四个类别均出现（无记录为 0）。
        """
        summary = {t: Decimal("0") for t in EarningType}
        for e in self._iter_earnings():
            if year is not None and e.date.year != year:
                continue
            summary[EarningType(e.type)] += e.total_value
        return {t: quantize_value(v) for t, v in summary.items()}

    def earnings_by_year(self) -> dict[int, Decimal]:
        """
        按年度汇总分配实收（所有类别合计）。

        Returns:
            {年份: 合计}，按年份升序，只含有记录的年份。
        """
        totals: dict[int, Decimal] = {}
        for e in self._iter_earnings():
            totals[e.date.year] = totals.get(e.date.year, Decimal("0")) + e.total_value
        return {y: quantize_value(totals[y]) for y in sorted(totals)}

    def earnings_by_month(self, year: int) -> dict[int, Decimal]:
        """
        某年度按月汇总分配实收。

        Returns:
            {月份(1-12): 合计}，按月份升序，只含有收入的月份。
        """
        totals: dict[int, Decimal] = {}
        for e in self._iter_earnings():
            if e.date.year == year:
                totals[e.date.month] = totals.get(e.date.month, Decimal("0")) + e.total_value
        return {m: quantize_value(totals[m]) for m in sorted(totals) if totals[m]}

    # ========== 重算 ==========

    def recalculate(self) -> None:
        """
        全量重算所有持仓的派生字段。

        没有任何交易与分配的持仓会被移除（持仓存在 ⇔ 有记录引用）。
        """
        for ticker in [t for t, a in self._assets.items() if not a.trades and not a.earnings]:
            del self._assets[ticker]
        for asset in self._assets.values():
            recalculate_asset(asset)

    # ========== 整体替换（公司行动 / 资产合并） ==========

    def replace_assets(self, changes: Mapping[str, Asset | None]) -> None:
        """
        原子地整体替换若干持仓（None 表示删除），然后全量重算。

        约定：
        - 新持仓中沿用旧 id 的交易替换全局列表中的同 id 交易（保持原位置）；
        - id 为 None 的交易视为新交易，分配 id 后追加到全局列表末尾；
        - 旧持仓中不再出现的交易从全局列表移除。

        Raises:
            DuplicateError: 替换后出现指纹冲突，账本保持不变。
        """
        # 1. 规划新的持仓映射
        planned: dict[str, Asset] = dict(self._assets)
        for ticker, asset in changes.items():
            if asset is None:
                planned.pop(ticker, None)
            else:
                planned[ticker] = asset

        # 2. 规划新的全局交易列表（按 id 关联）
        next_id = self._next_id
        by_id: dict[int, Trade] = {}
        appended: list[Trade] = []
        for ticker, asset in planned.items():
            resolved: list[Trade] = []
            for t in asset.trades:
                if t.ticker != ticker:
                    raise ValidationError(f"交易 ticker {t.ticker} 与持仓 {ticker} 不一致")
                if t.id is None:
                    t = replace(t, id=next_id)
                    next_id += 1
                    appended.append(t)
                by_id[t.id] = t
                resolved.append(t)
            if resolved != asset.trades:
                asset = replace(asset, trades=resolved)
                planned[ticker] = asset

        new_trades = [by_id[t.id] for t in self._trades if t.id in by_id] + appended

        # 3. 重建索引并检测指纹冲突
        new_trade_index: dict[str, Trade] = {}
        for t in new_trades:
            if t.fingerprint in new_trade_index:
                raise DuplicateError(t.fingerprint, f"替换后出现重复交易：{t.ticker} {t.date} {t.side}")
            new_trade_index[t.fingerprint] = t

        new_earning_index: dict[str, Earning] = {}
        for asset in planned.values():
            for e in asset.earnings:
                if e.fingerprint in new_earning_index:
                    raise DuplicateError(e.fingerprint, f"替换后出现重复分配：{e.ticker} {e.date}")
                new_earning_index[e.fingerprint] = e

        # 4. 提交（沿用已有持仓对象，保持外部引用有效）
        for ticker, asset in planned.items():
            current = self._assets.get(ticker)
            if current is not None and current is not asset:
                _adopt(current, asset)
                planned[ticker] = current
        self._assets = planned
        self._trades = new_trades
        self._trade_index = new_trade_index
        self._earning_index = new_earning_index
        self._next_id = next_id
        self.recalculate()

    # ========== 内部：追加 ==========

    def _append_trade(self, trade: Trade) -> Trade:
        trade = replace(trade, id=self._next_id)
        self._next_id += 1
        self._trades.append(trade)
        self._trade_index[trade.fingerprint] = trade
        self._ensure_asset(trade.ticker).trades.append(trade)
        return trade

    def _append_earning(self, earning: Earning) -> None:
        self._earning_index[earning.fingerprint] = earning
        self._ensure_asset(earning.ticker).earnings.append(earning)

    def _iter_earnings(self) -> Iterator[Earning]:
        for asset in self._assets.values():
            yield from asset.earnings

    def _ensure_asset(self, ticker: str) -> Asset:
        asset = self._assets.get(ticker)
        if asset is None:
            asset = Asset(ticker=ticker)
            self._assets[ticker] = asset
        return asset


def _adopt(current: Asset, planned: Asset) -> None:
    """把规划好的持仓内容写回现有对象（派生字段随后由 recalculate 覆盖）。"""
    current.trades = list(planned.trades)
    current.earnings = list(planned.earnings)
    current.type = planned.type
    current.subtype = planned.subtype
    current.segment = planned.segment
    current.subscription_of = planned.subscription_of
