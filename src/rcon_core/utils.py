# File: src/rcon_core/utils.py
"""
RCON 核心库 - 通用工具箱

本模块汇集了与协议细节无关的辅助工具 (超时预算、日志脱敏)。
"""

import time

from .exceptions import NetworkTimeoutError


class Deadline:
    """一次网络操作的总时限。

    握手与命令执行都包含多次读写，超时按整个操作计算，
    每次读写只能使用剩余的时间。timeout 为 None 表示无限等待。

    Example:
        >>> deadline = Deadline(5.0)
        >>> transport.send(data, deadline.remaining())
    """

    def __init__(self, timeout: float | None) -> None:
        if timeout is not None and timeout < 0:
            raise ValueError(f"超时时间不能为负数: {timeout}")
        self.timeout = timeout
        self._expires_at = None if timeout is None else time.monotonic() + timeout

    def remaining(self) -> float | None:
        """剩余秒数，无时限返回 None。

        Raises:
            NetworkTimeoutError: 时限已耗尽。
        """
        if self._expires_at is None:
            return None
        left = self._expires_at - time.monotonic()
        if left <= 0:
            raise NetworkTimeoutError(f"操作超时 ({self.timeout}s)")
        return left


def mask_secret(secret: str) -> str:
    """将密码等敏感字段替换为固定掩码，用于 repr 和日志。"""
    return "******" if secret else ""
