# src/rcon_core/protocols/types.py
"""
RCON 数据包类型分类 (Type Classifier)

同一个数字类型码在请求和响应两个方向上含义不同 (2 既是 EXECCOMMAND 又是
AUTH_RESPONSE)，因此这里使用两张互相独立的映射表，调用方必须显式说明方向。
"""

from enum import Enum, auto

from .constants import Code


class Direction(Enum):
    """解释类型码时所处的方向。"""

    REQUEST = auto()
    """客户端发往服务器。"""

    RESPONSE = auto()
    """服务器发往客户端。"""


class PacketKind(Enum):
    """数据包的逻辑类型。"""

    AUTH_REQUEST = auto()
    EXEC_REQUEST = auto()
    AUTH_RESPONSE = auto()
    VALUE_RESPONSE = auto()
    UNKNOWN = auto()

    @property
    def direction(self) -> Direction | None:
        """该逻辑类型所属的方向，UNKNOWN 返回 None。"""
        if self in (PacketKind.AUTH_REQUEST, PacketKind.EXEC_REQUEST):
            return Direction.REQUEST
        if self in (PacketKind.AUTH_RESPONSE, PacketKind.VALUE_RESPONSE):
            return Direction.RESPONSE
        return None

    @property
    def code(self) -> int:
        """逻辑类型对应的线上类型码。

        Raises:
            ValueError: UNKNOWN 没有对应的类型码。
        """
        try:
            return _KIND_TO_CODE[self]
        except KeyError:
            raise ValueError(f"{self.name} 没有对应的类型码") from None


# 两张表分开维护，不存在方向无关的查询
_RESPONSE_KINDS: dict[int, PacketKind] = {
    Code.RESPONSE_VALUE: PacketKind.VALUE_RESPONSE,
    Code.AUTH_RESPONSE: PacketKind.AUTH_RESPONSE,
}

_REQUEST_KINDS: dict[int, PacketKind] = {
    Code.EXEC_COMMAND: PacketKind.EXEC_REQUEST,
    Code.AUTH: PacketKind.AUTH_REQUEST,
}

_KIND_TO_CODE: dict[PacketKind, int] = {
    PacketKind.VALUE_RESPONSE: Code.RESPONSE_VALUE,
    PacketKind.AUTH_RESPONSE: Code.AUTH_RESPONSE,
    PacketKind.EXEC_REQUEST: Code.EXEC_COMMAND,
    PacketKind.AUTH_REQUEST: Code.AUTH,
}


def classify_as_response(code: int) -> PacketKind:
    """将类型码作为服务器响应解释。

    Args:
        code: 数据包头部的 Type 字段。

    Returns:
        PacketKind: VALUE_RESPONSE (0)、AUTH_RESPONSE (2) 或 UNKNOWN。
    """
    return _RESPONSE_KINDS.get(code, PacketKind.UNKNOWN)


def classify_as_request(code: int) -> PacketKind:
    """将类型码作为客户端请求解释。

    Args:
        code: 数据包头部的 Type 字段。

    Returns:
        PacketKind: EXEC_REQUEST (2)、AUTH_REQUEST (3) 或 UNKNOWN。
    """
    return _REQUEST_KINDS.get(code, PacketKind.UNKNOWN)


def classify(code: int, direction: Direction) -> PacketKind:
    """按给定方向解释类型码。"""
    if direction is Direction.RESPONSE:
        return classify_as_response(code)
    if direction is Direction.REQUEST:
        return classify_as_request(code)
    raise ValueError(f"未知方向: {direction!r}")
