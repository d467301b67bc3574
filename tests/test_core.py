# tests/test_core.py
"""
测试 RconSession 的生命周期:
1. open: 连接 + 认证 + 准备哨兵包。
2. execute: 重组、幂等、失败后会话损坏。
3. 并发: execute 被内部锁串行化。
"""

import threading
from unittest.mock import MagicMock, patch

import pytest

from conftest import FakeRconServer, FakeTransport
from rcon_core import (
    AuthError,
    AuthProtocolError,
    BodyTooLargeError,
    ConnectError,
    HandshakeState,
    MalformedPacketError,
    NetworkError,
    RconConfig,
    RconSession,
    SessionStatus,
    StateError,
)
from rcon_core.protocols import packets
from rcon_core.protocols.types import PacketKind


@pytest.fixture
def session(valid_config, server_transport):
    """[Fixture] 已认证的会话"""
    rcon = RconSession.open(valid_config, transport=server_transport)
    yield rcon
    rcon.close()


# --- open / login ---


def test_open_authenticates_and_builds_sentinel(session, server_transport):
    state = session.state
    assert state.status is SessionStatus.READY
    assert state.handshake is HandshakeState.AUTHENTICATED
    assert server_transport.sent[0].request_kind is PacketKind.AUTH_REQUEST

    # 未配置 safe_command 时使用空 RESPONSE_VALUE 哨兵
    assert session.control_packet == packets.build_response_value_packet(-1)


def test_open_with_safe_command(server_transport):
    config = RconConfig(address="127.0.0.1:27015", password="test_password", safe_command="echo")
    with RconSession.open(config, transport=server_transport) as rcon:
        assert rcon.control_packet == packets.build_exec_packet(-1, "echo")
        assert rcon.execute("help") == "Hello"


def test_open_single_auth_dialect(valid_config):
    transport = FakeTransport(responder=FakeRconServer(double_auth=False))
    with RconSession.open(valid_config, transport=transport) as rcon:
        assert rcon.state.is_ready


def test_open_rejected_closes_transport(server_transport):
    config = RconConfig(address="127.0.0.1:27015", password="wrong")
    with pytest.raises(AuthError):
        RconSession.open(config, transport=server_transport)
    assert server_transport.closed


def test_login_rejected_records_state(server_transport):
    config = RconConfig(address="127.0.0.1:27015", password="wrong")
    rcon = RconSession(config, transport=server_transport)

    with pytest.raises(AuthError):
        rcon.login()

    state = rcon.state
    assert state.status is SessionStatus.ERROR
    assert state.handshake is HandshakeState.REJECTED
    assert "认证被拒绝" in state.last_error


def test_login_protocol_error(valid_config, fake_transport):
    fake_transport.queue(
        packets.build_response_value_packet(0),
        packets.build_response_value_packet(0),
    )
    rcon = RconSession(valid_config, transport=fake_transport)

    with pytest.raises(AuthProtocolError):
        rcon.login()
    assert rcon.state.handshake is HandshakeState.PROTOCOL_ERROR


def test_open_connects_over_tcp(valid_config):
    with patch("rcon_core.core.TcpTransport") as mock_cls:
        mock_transport = mock_cls.from_address.return_value
        with patch("rcon_core.core.perform_handshake") as mock_hs:
            mock_hs.return_value = HandshakeState.AUTHENTICATED
            rcon = RconSession.open(valid_config)

    mock_cls.from_address.assert_called_once_with("127.0.0.1:27015")
    mock_transport.connect.assert_called_once_with(None)
    assert rcon.state.status is SessionStatus.READY


def test_open_connect_failure(valid_config):
    with patch("rcon_core.core.TcpTransport") as mock_cls:
        mock_cls.from_address.return_value.connect.side_effect = ConnectError("refused")
        with pytest.raises(ConnectError):
            RconSession.open(valid_config)


def test_status_listener_receives_transitions(valid_config, server_transport):
    seen = []
    RconSession.open(
        valid_config,
        transport=server_transport,
        status_callback=lambda status, msg: seen.append(status),
    )
    assert seen == [SessionStatus.AUTHENTICATING, SessionStatus.READY]


def test_listener_errors_do_not_propagate(valid_config, server_transport):
    broken = MagicMock(side_effect=RuntimeError("boom"))
    rcon = RconSession.open(valid_config, transport=server_transport, status_callback=broken)
    assert rcon.execute("status") == "hostname: test"
    assert broken.call_count > 0


# --- execute ---


def test_execute_multi_fragment(session):
    assert session.execute("help") == "Hello"


def test_execute_sends_command_then_sentinel(session, server_transport):
    server_transport.sent.clear()
    session.execute("status")
    assert server_transport.sent == [
        packets.build_exec_packet(0, "status"),
        packets.build_response_value_packet(-1),
    ]


def test_execute_empty_response(session):
    assert session.execute("unknown-command") == ""


def test_execute_is_idempotent(session):
    results = [session.execute("help") for _ in range(3)]
    assert results == ["Hello"] * 3
    assert session.state.commands_executed == 3


def test_execute_uses_configured_ids(rcon_server):
    config = RconConfig(
        address="127.0.0.1:27015",
        password="test_password",
        login_id=7,
        command_id=100,
        control_id=200,
    )
    transport = FakeTransport(responder=rcon_server)
    with RconSession.open(config, transport=transport) as rcon:
        assert rcon.execute("help") == "Hello"

    assert [p.id for p in transport.sent] == [7, 100, 200]


def test_execute_oversized_command_keeps_session(session, server_transport):
    server_transport.sent.clear()
    with pytest.raises(BodyTooLargeError):
        session.execute("x" * 5000)

    assert server_transport.sent == []
    assert session.state.status is SessionStatus.READY
    assert session.execute("status") == "hostname: test"


def test_execute_failure_breaks_session(valid_config, fake_transport):
    fake_transport.queue(packets.build_response_auth_packet(0))
    rcon = RconSession.open(valid_config, transport=fake_transport)

    # 只回一个片段就断开
    fake_transport.queue(packets.build_response_value_packet(0, "partial"))
    with pytest.raises(NetworkError):
        rcon.execute("status")

    assert rcon.state.status is SessionStatus.ERROR
    with pytest.raises(StateError):
        rcon.execute("status")


class InterruptingTransport(FakeTransport):
    """第一次读取时抛出 KeyboardInterrupt，模拟用户中断"""

    def __init__(self, responder=None):
        super().__init__(responder)
        self.interrupt_next_read = False

    def receive_exact(self, size, timeout=None):
        if self.interrupt_next_read:
            self.interrupt_next_read = False
            raise KeyboardInterrupt
        return super().receive_exact(size, timeout)


def test_execute_interrupted_breaks_session(valid_config, rcon_server):
    rcon_server.replies.update({"a": ["A-reply"], "b": ["B-reply"]})
    transport = InterruptingTransport(responder=rcon_server)
    rcon = RconSession.open(valid_config, transport=transport)

    transport.interrupt_next_read = True
    with pytest.raises(KeyboardInterrupt):
        rcon.execute("a")

    # "a" 的响应仍留在流中，会话不能再返回它
    assert transport.pending > 0
    assert rcon.state.status is SessionStatus.ERROR
    assert "KeyboardInterrupt" in rcon.state.last_error
    with pytest.raises(StateError):
        rcon.execute("b")


def test_execute_transport_bug_breaks_session(valid_config, fake_transport):
    fake_transport.queue(packets.build_response_auth_packet(0))
    rcon = RconSession.open(valid_config, transport=fake_transport)

    with patch.object(fake_transport, "send", side_effect=RuntimeError("boom")):
        with pytest.raises(RuntimeError):
            rcon.execute("status")

    assert rcon.state.status is SessionStatus.ERROR
    with pytest.raises(StateError):
        rcon.execute("status")


def test_execute_unencodable_command_keeps_session(session, server_transport):
    server_transport.sent.clear()
    with pytest.raises(MalformedPacketError):
        session.execute("\ud800")

    assert server_transport.sent == []
    assert session.state.status is SessionStatus.READY
    assert session.execute("status") == "hostname: test"


@pytest.mark.parametrize("timeout", [0, -1.0])
def test_execute_rejects_non_positive_timeout(session, server_transport, timeout):
    server_transport.sent.clear()
    with pytest.raises(ValueError):
        session.execute("status", timeout=timeout)

    assert server_transport.sent == []
    assert session.state.status is SessionStatus.READY
    assert session.execute("status", timeout=1.0) == "hostname: test"


def test_login_rejects_non_positive_timeout(valid_config, server_transport):
    rcon = RconSession(valid_config, transport=server_transport)
    with pytest.raises(ValueError):
        rcon.login(timeout=0)

    assert server_transport.sent == []
    assert rcon.state.status is SessionStatus.IDLE


def test_execute_before_login(valid_config, fake_transport):
    rcon = RconSession(valid_config, transport=fake_transport)
    with pytest.raises(StateError):
        rcon.execute("status")


def test_execute_after_close(session, server_transport):
    session.close()
    assert server_transport.closed
    assert session.state.status is SessionStatus.CLOSED
    with pytest.raises(StateError):
        session.execute("status")


def test_execute_uses_io_timeout_from_config(rcon_server):
    config = RconConfig(address="127.0.0.1:27015", password="test_password", io_timeout=3.0)
    transport = FakeTransport(responder=rcon_server)
    rcon = RconSession.open(config, transport=transport)

    transport.receive_timeouts.clear()
    rcon.execute("status")
    assert transport.receive_timeouts
    assert all(0 < t <= 3.0 for t in transport.receive_timeouts)

    transport.receive_timeouts.clear()
    rcon.execute("status", timeout=1.0)
    assert all(0 < t <= 1.0 for t in transport.receive_timeouts)


def test_concurrent_execute_is_serialized(valid_config, rcon_server):
    """多个线程同时 execute: 每个调用都得到自己命令的完整响应"""
    rcon_server.replies.update({f"cmd{i}": [f"r{i}-a", f"r{i}-b"] for i in range(8)})
    transport = FakeTransport(responder=rcon_server)
    rcon = RconSession.open(valid_config, transport=transport)

    results = {}

    def worker(i):
        results[i] = rcon.execute(f"cmd{i}")

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert results == {i: f"r{i}-a" + f"r{i}-b" for i in range(8)}
    assert rcon.state.commands_executed == 8


def test_context_manager_closes(valid_config, server_transport):
    with RconSession(valid_config, transport=server_transport) as rcon:
        assert rcon.execute("status") == "hostname: test"
    assert server_transport.closed
    assert rcon.state.status is SessionStatus.CLOSED
