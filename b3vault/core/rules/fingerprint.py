"""
记录内容指纹（SHA-256）。

口径：
- 交易：date|side|institution|ticker|quantity|price|amount
- 分配：date|type|ticker|quantity|unit_value|total_value
- 日期为 ISO 格式，数值为 8 位小数定长字符串；
- 相同字段 ⇒ 相同指纹，任一字段变化 ⇒ 指纹变化。

指纹只用于与新导入数据去重，不作为账本内部的关联键（见 Trade.id）。
"""

from __future__ import annotations

import hashlib
from dataclasses import replace

from b3vault.core.models.earning import Earning
from b3vault.core.models.trade import Trade
from b3vault.core.rules.precision import fixed8


def _digest(parts: list[str]) -> str:
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()


def trade_fingerprint(trade: Trade) -> str:
    """计算交易指纹（忽略 trade.fingerprint 与 trade.id）。"""
    return _digest(
        [
            trade.date.isoformat(),
            str(trade.side),
            trade.institution,
            trade.ticker,
            fixed8(trade.quantity),
            fixed8(trade.price),
            fixed8(trade.amount),
        ]
    )


def earning_fingerprint(earning: Earning) -> str:
    """计算分配指纹（忽略 earning.fingerprint）。"""
    return _digest(
        [
            earning.date.isoformat(),
            str(earning.type),
            earning.ticker,
            fixed8(earning.quantity),
            fixed8(earning.unit_value),
            fixed8(earning.total_value),
        ]
    )


def with_trade_fingerprint(trade: Trade) -> Trade:
    """返回带指纹的交易；已有指纹时原样返回。"""
    if trade.fingerprint:
        return trade
    return replace(trade, fingerprint=trade_fingerprint(trade))


def with_earning_fingerprint(earning: Earning) -> Earning:
    """返回带指纹的分配；已有指纹时原样返回。"""
    if earning.fingerprint:
        return earning
    return replace(earning, fingerprint=earning_fingerprint(earning))


def refingerprint_trade(trade: Trade, **changes) -> Trade:
    """修改字段并重新计算指纹（公司行动/换 ticker 使用）。"""
    updated = replace(trade, fingerprint="", **changes)
    return replace(updated, fingerprint=trade_fingerprint(updated))


def refingerprint_earning(earning: Earning, **changes) -> Earning:
    """修改字段并重新计算分配指纹。"""
    updated = replace(earning, fingerprint="", **changes)
    return replace(updated, fingerprint=earning_fingerprint(updated))
