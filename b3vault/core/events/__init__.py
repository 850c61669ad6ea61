from .corporate_action import apply_grouping, apply_split
from .ratio import (
    check_grouping_ratio,
    check_split_ratio,
    format_ratio,
    parse_grouping_ratio,
    parse_ratio,
    parse_split_ratio,
)

"""
公司行动（合股/拆股）与比例解析。
"""

__all__ = [
    "apply_grouping",
    "apply_split",
    "parse_ratio",
    "parse_grouping_ratio",
    "parse_split_ratio",
    "check_grouping_ratio",
    "check_split_ratio",
    "format_ratio",
]
