"""
面向用户的进度输出。

约定：
- flows/cli 统一使用 log(f"[Tag] ...") 输出进度与结果，Tag 为组件名（[Vault]、[Trade:buy] 等）；
- 底层模块使用 logging.getLogger(__name__) 输出调试信息；
- 任何位置都不得输出密码、密钥或明文账本内容。
"""

from __future__ import annotations

import logging
import sys

_console = logging.getLogger("b3vault.console")


class _StdoutHandler(logging.StreamHandler):
    """始终写入当前的 sys.stdout（测试中可被替换）。"""

    def __init__(self) -> None:
        super().__init__(sys.stdout)

    def emit(self, record: logging.LogRecord) -> None:
        self.stream = sys.stdout
        super().emit(record)


def _ensure_console() -> None:
    if _console.handlers:
        return
    handler = _StdoutHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    _console.addHandler(handler)
    _console.setLevel(logging.INFO)
    _console.propagate = False


def log(message: str) -> None:
    """输出一行用户可见信息。"""
    _ensure_console()
    _console.info(message)


def setup_logging(debug: bool = False) -> None:
    """
    配置诊断日志。

    Args:
        debug: True 时输出 b3vault.* 的 DEBUG 日志，否则只输出 WARNING 及以上。
    """
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s - %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)
