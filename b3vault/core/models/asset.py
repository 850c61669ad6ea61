from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from b3vault.core.models.earning import Earning
from b3vault.core.models.trade import Trade

DEFAULT_ASSET_TYPE = "renda variável"
"""新建持仓的默认类型（券商导出记录均为可变收益类）。"""


@dataclass(slots=True)
class Asset:
    """
    单个 ticker 的持仓聚合。

    字段分三类：
    - 历史记录：trades / earnings（本持仓拥有的交易与分配）
    - 分类标签：type / subtype / segment / subscription_of（用户设置，重算不会修改）
    - 派生字段：average_cost / invested_capital / quantity / total_earnings
      仅由 calculator.recalculate_asset 写入，禁止在其他位置手动修改。

    quantity 为整数，可能在纠正操作（如拆股）之前短暂为负。
    quantity == 0 的持仓保留完整历史，但不计入"当前持有"视图。
    """

    ticker: str
    trades: list[Trade] = field(default_factory=list)
    earnings: list[Earning] = field(default_factory=list)

    type: str = DEFAULT_ASSET_TYPE
    subtype: str = ""
    segment: str = ""
    subscription_of: str | None = None
    """若本持仓是认购权，对应的母资产 ticker。"""

    average_cost: Decimal = Decimal("0")
    invested_capital: Decimal = Decimal("0")
    quantity: int = 0
    total_earnings: Decimal = Decimal("0")

    @property
    def is_subscription(self) -> bool:
        return self.subscription_of is not None

    @property
    def is_active(self) -> bool:
        return self.quantity != 0
