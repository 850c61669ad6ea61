from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class TradeSide(str, Enum):
    """
    交易方向枚举。

    说明：
    - 继承自 str，序列化时直接写入枚举值；
    - 券商导出的原始字段（Compra/Venda）由导入适配层映射到这里。
    """

    BUY = "Buy"
    SELL = "Sell"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Trade:
    """
    交易记录（不可变）。

    说明：
    - 数量/单价/金额均使用 Decimal，禁止 float；
    - fingerprint 为内容指纹，仅用于与"新导入数据"去重，为空表示尚未计算；
    - id 为账本内部的稳定编号（入账时分配，与内容无关），
      公司行动/资产合并后重建列表时按 id 关联，而不是按指纹或字段匹配；
    - 公司行动不会修改原记录，而是生成新的 Trade 替换（新数量/单价 ⇒ 新指纹）。
    """

    date: date
    side: TradeSide
    institution: str
    ticker: str
    quantity: Decimal
    price: Decimal
    amount: Decimal
    fingerprint: str = ""
    id: int | None = None

    @property
    def is_buy(self) -> bool:
        return self.side is TradeSide.BUY
