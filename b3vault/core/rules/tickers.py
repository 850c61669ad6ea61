"""
ticker 规范化工具。

B3 碎股市场（Mercado Fracionário）的代码以 "F" 结尾（如 KLBN3F），
与去掉 "F" 后的代码（KLBN3）代表同一标的。
"""

from __future__ import annotations

FRACTIONAL_SUFFIX = "F"


def is_fractional_ticker(ticker: str) -> bool:
    """ticker 是否带碎股后缀。"""
    return bool(ticker) and ticker.endswith(FRACTIONAL_SUFFIX)


def normalize_ticker(ticker: str) -> str:
    """
    规范化 ticker：去空格、转大写、去掉碎股后缀。

    示例：" itsa4f " -> "ITSA4"，"BOVA11" -> "BOVA11"。
    """
    value = ticker.strip().upper()
    if is_fractional_ticker(value):
        return value[: -len(FRACTIONAL_SUFFIX)]
    return value
