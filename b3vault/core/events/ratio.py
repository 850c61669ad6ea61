"""
公司行动比例解析。

格式："N:M"（两侧为正整数，允许空格）。
- 合股（Grupamento）：N:1，N >= 2
- 拆股（Desdobramento）：1:M，M >= 2
"""

from __future__ import annotations

from b3vault.core.errors import ValidationError
from b3vault.core.models import Ratio


def parse_ratio(text: str) -> Ratio:
    """
    解析 "N:M" 形式的比例（只检查格式与正整数，不检查合股/拆股约束）。

    Raises:
        ValidationError: 格式错误或非正整数。
    """
    parts = text.split(":")
    if len(parts) != 2:
        raise ValidationError(f"比例格式错误：应为 'N:M'（如 '10:1'），当前 {text!r}")
    try:
        from_qty = int(parts[0].strip())
        to_qty = int(parts[1].strip())
    except ValueError:
        raise ValidationError(f"比例格式错误：应为 'N:M'（如 '10:1'），当前 {text!r}") from None
    if from_qty <= 0 or to_qty <= 0:
        raise ValidationError(f"比例两侧必须为正整数，当前 {text!r}")
    return Ratio(from_qty=from_qty, to_qty=to_qty)


def check_grouping_ratio(ratio: Ratio) -> Ratio:
    """合股比例约束：From >= 2 且 To == 1。"""
    if ratio.from_qty < 2:
        raise ValidationError(f"合股比例无效：左侧必须 >= 2（当前 {ratio}）")
    if ratio.to_qty != 1:
        raise ValidationError(f"合股比例无效：右侧必须为 1（当前 {ratio}）")
    return ratio


def check_split_ratio(ratio: Ratio) -> Ratio:
    """拆股比例约束：From == 1 且 To >= 2。"""
    if ratio.from_qty != 1:
        raise ValidationError(f"拆股比例无效：左侧必须为 1（当前 {ratio}）")
    if ratio.to_qty < 2:
        raise ValidationError(f"拆股比例无效：右侧必须 >= 2（当前 {ratio}）")
    return ratio


def parse_grouping_ratio(text: str) -> Ratio:
    """解析并校验合股比例，如 "10:1"。"""
    return check_grouping_ratio(parse_ratio(text))


def parse_split_ratio(text: str) -> Ratio:
    """解析并校验拆股比例，如 "1:2"。"""
    return check_split_ratio(parse_ratio(text))


def format_ratio(ratio: Ratio) -> str:
    return f"{ratio.from_qty}:{ratio.to_qty}"
