"""
数量/价格/金额精度工具函数。

统一精度规则：
- 账本内数值：4 位小数（B3 导出记录的精度）
- 持仓数量：整数（四舍五入，远离零）
- 指纹输入：8 位小数定长字符串，避免 Decimal 的指数表示影响哈希
- 序列化：4 位小数定长字符串，禁止二进制浮点
"""

from decimal import ROUND_HALF_UP, Decimal

_FOUR_PLACES = Decimal("0.0001")
_EIGHT_PLACES = Decimal("0.00000001")


def quantize_value(value: Decimal) -> Decimal:
    """
    将数值量化为 4 位小数。

    Args:
        value: 数值（Decimal）。

    Returns:
        量化后的数值（4 位小数）。
    """
    return value.quantize(_FOUR_PLACES, rounding=ROUND_HALF_UP)


def round_quantity(quantity: Decimal) -> int:
    """
    将持仓数量四舍五入为整数。

    Args:
        quantity: 买入合计 - 卖出合计（Decimal，可为负）。

    Returns:
        整数持仓数量（.5 远离零取整）。
    """
    return int(quantity.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def fixed4(value: Decimal) -> str:
    """格式化为 4 位小数定长字符串（序列化口径）。"""
    return format(quantize_value(value), "f")


def fixed8(value: Decimal) -> str:
    """格式化为 8 位小数定长字符串（指纹口径）。"""
    return format(value.quantize(_EIGHT_PLACES, rounding=ROUND_HALF_UP), "f")
