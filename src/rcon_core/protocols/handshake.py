"""
RCON 认证握手 (Authentication Handshake)

协议规定 SERVERDATA_AUTH 之后服务器先回一个空的 RESPONSE_VALUE，
再回 AUTH_RESPONSE；但有些服务器只回 AUTH_RESPONSE。
这里的状态机两种顺序都接受，且不预设固定的包数量。

AuthHandshake 本身不做任何 I/O，由 perform_handshake 驱动。
"""

import logging

from ..exceptions import AuthError, AuthProtocolError, StateError
from ..network import BaseTransport
from ..state import HandshakeState
from ..utils import Deadline
from . import packets
from .types import PacketKind

logger = logging.getLogger(__name__)


class AuthHandshake:
    """认证握手状态机。

    用法:
        hs = AuthHandshake(password, login_id=0)
        request = hs.start()          # -> SENT_AUTH
        hs.sent()                     # -> AWAITING_FIRST
        hs.feed(first_reply)          # -> AUTHENTICATED / REJECTED / AWAITING_SECOND
        hs.feed(second_reply)         # 仅在 AWAITING_SECOND 时需要
    """

    def __init__(self, password: str, login_id: int = 0) -> None:
        self.login_id = login_id
        # 密码超长时在这里就失败，不会发出任何字节
        self.request = packets.build_auth_packet(login_id, password)
        self.state: HandshakeState | None = None
        self.response_id: int | None = None

    @property
    def done(self) -> bool:
        return self.state is not None and self.state.is_terminal

    def start(self) -> packets.Packet:
        """返回要发送的认证请求包 (-> SENT_AUTH)。"""
        if self.state is not None:
            raise StateError(f"握手已开始 (当前状态 {self.state.name})")
        self.state = HandshakeState.SENT_AUTH
        return self.request

    def sent(self) -> None:
        """认证请求已写出，开始等待第一个响应 (-> AWAITING_FIRST)。"""
        if self.state is not HandshakeState.SENT_AUTH:
            raise StateError("认证请求尚未生成")
        logger.debug(f"认证请求已发送 (id={self.login_id})")
        self.state = HandshakeState.AWAITING_FIRST

    def feed(self, packet: packets.Packet) -> HandshakeState:
        """输入一个收到的数据包，推进状态机。

        Returns:
            HandshakeState: 推进后的状态。
        """
        if self.state not in (
            HandshakeState.AWAITING_FIRST,
            HandshakeState.AWAITING_SECOND,
        ):
            state_name = self.state.name if self.state else "未开始"
            raise StateError(f"握手不在等待响应的状态 ({state_name})")

        if packet.response_kind is PacketKind.AUTH_RESPONSE:
            self.response_id = packet.id
            if packet.id == self.login_id:
                self.state = HandshakeState.AUTHENTICATED
            else:
                self.state = HandshakeState.REJECTED
        elif self.state is HandshakeState.AWAITING_FIRST:
            # 标准顺序: 先收到一个空的 RESPONSE_VALUE
            logger.debug(
                f"认证首包不是 AUTH_RESPONSE (type={packet.type})，等待第二个响应"
            )
            self.state = HandshakeState.AWAITING_SECOND
        else:
            self.state = HandshakeState.PROTOCOL_ERROR

        return self.state

    def raise_for_state(self) -> None:
        """将失败的终态转换为对应异常。"""
        if self.state is HandshakeState.REJECTED:
            raise AuthError("认证失败，密码错误。", response_id=self.response_id)
        if self.state is HandshakeState.PROTOCOL_ERROR:
            raise AuthProtocolError("服务器没有返回有效的认证响应")


def perform_handshake(
    transport: BaseTransport,
    password: str,
    login_id: int = 0,
    timeout: float | None = None,
) -> HandshakeState:
    """在 Transport 上完成一次认证握手。

    Args:
        transport: 已连接的字节流。
        password: RCON 密码。
        login_id: 认证请求使用的包 ID。
        timeout: 整个握手的时限 (秒)，None 表示不限。

    Returns:
        HandshakeState: 成功时恒为 AUTHENTICATED。

    Raises:
        AuthError: 密码被拒绝。
        AuthProtocolError: 服务器在两种已知顺序下都没有给出认证响应。
        NetworkError: 网络通信失败或超时。
        MalformedPacketError: 收到无法解析的数据帧。
        BodyTooLargeError: 密码超过正文上限。
    """
    hs = AuthHandshake(password, login_id)
    deadline = Deadline(timeout)

    transport.send(packets.serialize_packet(hs.start()), deadline.remaining())
    hs.sent()

    while not hs.done:
        reply = packets.read_packet(
            lambda n: transport.receive_exact(n, deadline.remaining())
        )
        hs.feed(reply)

    hs.raise_for_state()
    logger.info("认证成功")
    return HandshakeState.AUTHENTICATED
