# File: src/rcon_core/state.py
"""
RCON 核心库 - 状态模块

负责定义和存储所有易变的会话状态。
本模块不包含业务逻辑，仅作为数据容器供 Session 与握手流程共享读写。
"""

from dataclasses import dataclass
from enum import Enum, auto


class SessionStatus(Enum):
    """会话的生命周期状态枚举。

    状态流转示意:
    IDLE -> CONNECTING -> AUTHENTICATING -> READY <-> BUSY -> CLOSED
               |                |             |        |
               v                v             v        v
             ERROR            ERROR         ERROR    ERROR
    """

    IDLE = auto()
    """初始状态，会话已实例化但尚未连接。"""

    CONNECTING = auto()
    """正在建立 TCP 连接。"""

    AUTHENTICATING = auto()
    """连接已建立，正在进行密码握手。"""

    READY = auto()
    """认证成功，可以执行命令。"""

    BUSY = auto()
    """正在执行命令并重组响应。"""

    CLOSED = auto()
    """连接已关闭 (主动关闭或认证失败后清理)。"""

    ERROR = auto()
    """发生了不可恢复的错误，数据流位置未知，会话不可再用。"""


class HandshakeState(Enum):
    """认证握手状态机。

    SENT_AUTH -> AWAITING_FIRST -> AUTHENTICATED / REJECTED
                       |
                       v
                AWAITING_SECOND -> AUTHENTICATED / REJECTED / PROTOCOL_ERROR
    """

    SENT_AUTH = auto()
    AWAITING_FIRST = auto()
    AWAITING_SECOND = auto()
    AUTHENTICATED = auto()
    REJECTED = auto()
    PROTOCOL_ERROR = auto()

    @property
    def is_terminal(self) -> bool:
        return self in (
            HandshakeState.AUTHENTICATED,
            HandshakeState.REJECTED,
            HandshakeState.PROTOCOL_ERROR,
        )


@dataclass
class SessionState:
    """存储 RCON 会话的易变状态数据。

    Attributes:
        status: 当前会话的运行状态。
        handshake: 最近一次握手停留的状态，未握手时为 None。
        last_error: 最近一次发生的错误信息描述，用于 UI 显示。
        commands_executed: 成功完成的命令数量。
    """

    status: SessionStatus = SessionStatus.IDLE
    handshake: HandshakeState | None = None
    last_error: str = ""
    commands_executed: int = 0

    @property
    def is_ready(self) -> bool:
        """判断会话当前是否可以执行命令。"""
        return self.status in (SessionStatus.READY, SessionStatus.BUSY)
