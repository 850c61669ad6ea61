from .asset import DEFAULT_ASSET_TYPE, Asset
from .earning import Earning, EarningType
from .results import (
    AddResult,
    CorporateActionResult,
    EarningsReport,
    MergeResult,
    Ratio,
    SubscriptionResult,
)
from .trade import Trade, TradeSide

"""
领域模型聚合导出。

说明：
- 仅做名称聚合，不引入额外逻辑，便于上层模块统一引用；
- 各子模块仍可直接导入。
"""

__all__ = [
    # 记录
    "Trade",
    "TradeSide",
    "Earning",
    "EarningType",
    # 持仓
    "Asset",
    "DEFAULT_ASSET_TYPE",
    # 操作结果
    "AddResult",
    "CorporateActionResult",
    "EarningsReport",
    "MergeResult",
    "Ratio",
    "SubscriptionResult",
]
