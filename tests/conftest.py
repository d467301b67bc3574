# tests/conftest.py
import sys
from pathlib import Path

import pytest

# 确保 src 目录在 sys.path 中
src_path = Path(__file__).resolve().parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from rcon_core.config import RconConfig
from rcon_core.exceptions import NetworkError
from rcon_core.network import BaseTransport
from rcon_core.protocols import packets
from rcon_core.protocols.types import PacketKind


class FakeTransport(BaseTransport):
    """内存中的字节流: 记录所有写出的包，从预置缓冲区读取响应。

    responder 在每次 send 后被调用，返回值会追加到接收缓冲区，
    用来模拟一个按序回复的服务器。
    """

    def __init__(self, responder=None):
        self.responder = responder
        self.sent: list[packets.Packet] = []
        self.sent_bytes: list[bytes] = []
        self.receive_timeouts: list[float | None] = []
        self._inbox = bytearray()
        self.closed = False

    @property
    def is_open(self) -> bool:
        return not self.closed

    @property
    def pending(self) -> int:
        """尚未被读取的字节数。"""
        return len(self._inbox)

    def queue(self, *items: packets.Packet) -> None:
        for item in items:
            self._inbox.extend(packets.serialize_packet(item))

    def queue_bytes(self, data: bytes) -> None:
        self._inbox.extend(data)

    def send(self, data: bytes, timeout: float | None = None) -> None:
        if self.closed:
            raise NetworkError("Transport 已关闭")
        self.sent_bytes.append(data)
        packet = packets.parse_packet(data)
        self.sent.append(packet)
        if self.responder is not None:
            self.queue(*self.responder(packet))

    def receive_exact(self, size: int, timeout: float | None = None) -> bytes:
        self.receive_timeouts.append(timeout)
        if self.closed:
            raise NetworkError("Transport 已关闭")
        if len(self._inbox) < size:
            raise NetworkError("连接已被对端关闭")
        data = bytes(self._inbox[:size])
        del self._inbox[:size]
        return data

    def close(self) -> None:
        self.closed = True


class FakeRconServer:
    """确定性的 RCON 服务器行为，用作 FakeTransport 的 responder。

    Attributes:
        password: 正确的密码。
        replies: 命令 -> 响应片段列表；未登记的命令回一个空片段。
        double_auth: True 时认证先回空 RESPONSE_VALUE 再回 AUTH_RESPONSE。
    """

    def __init__(self, password="test_password", replies=None, double_auth=True):
        self.password = password
        self.replies = replies or {}
        self.double_auth = double_auth
        self.commands: list[str] = []

    def __call__(self, packet: packets.Packet) -> list[packets.Packet]:
        kind = packet.request_kind

        if kind is PacketKind.AUTH_REQUEST:
            auth_id = packet.id if packet.body == self.password else -1
            reply = [packets.build_response_auth_packet(auth_id)]
            if self.double_auth:
                reply.insert(0, packets.build_response_value_packet(packet.id))
            return reply

        if kind is PacketKind.EXEC_REQUEST:
            self.commands.append(packet.body)
            fragments = self.replies.get(packet.body, [""])
            return [
                packets.build_response_value_packet(packet.id, fragment)
                for fragment in fragments
            ]

        # 空 RESPONSE_VALUE 哨兵: 原样回一个同 ID 的 RESPONSE_VALUE
        return [packets.build_response_value_packet(packet.id)]


@pytest.fixture
def valid_config():
    """
    [Fixture] 返回一个使用默认保留 ID 的 RconConfig 对象。
    """
    return RconConfig(
        address="127.0.0.1:27015",
        password="test_password",
    )


@pytest.fixture
def fake_transport():
    """[Fixture] 没有自动回复的空 Transport，测试自行预置响应。"""
    return FakeTransport()


@pytest.fixture
def rcon_server():
    return FakeRconServer(
        replies={
            "status": ["hostname: test"],
            "help": ["He", "llo"],
        }
    )


@pytest.fixture
def server_transport(rcon_server):
    """[Fixture] 由 FakeRconServer 自动回复的 Transport。"""
    return FakeTransport(responder=rcon_server)
