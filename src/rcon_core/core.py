# File: src/rcon_core/core.py
"""
RCON 会话引擎 (Session Engine)

职责：
1. 资源组装：State + Transport + Config。
2. 生命周期：Connect -> Login -> Execute ... -> Close。
3. 独占性：同一会话上的 execute 调用由内部锁串行化。
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from .config import RconConfig
from .exceptions import (
    AuthError,
    AuthProtocolError,
    RconError,
    StateError,
)
from .network import BaseTransport, TcpTransport
from .protocols import (
    build_control_packet,
    build_exec_packet,
    perform_handshake,
    run_command,
)
from .protocols.packets import Packet
from .state import HandshakeState, SessionState, SessionStatus

logger = logging.getLogger(__name__)

# 状态回调类型: (新状态, 描述)
StatusCallback = Callable[[SessionStatus, str], Any]


class RconSession:
    """RCON 客户端会话。

    一个会话独占一条连接和一个哨兵包。会话可以跨线程共享，
    execute 调用会被串行化，但同一时刻只有一个命令在连接上执行。

    Example:
        >>> config = create_config_from_dict({"address": "127.0.0.1:27015", "password": "pw"})
        >>> with RconSession(config) as rcon:
        ...     print(rcon.execute("status"))
    """

    def __init__(
        self,
        config: RconConfig,
        transport: BaseTransport | None = None,
        status_callback: StatusCallback | None = None,
    ) -> None:
        """初始化会话 (不进行任何网络操作)。

        Args:
            config: 会话配置。
            transport: 外部提供的已连接字节流；为 None 时由 connect() 建立 TCP 连接。
            status_callback: 初始状态回调。也可以之后使用 add_listener 注册。
        """
        self.config = config
        self.transport = transport
        self._state = SessionState()
        self._listeners: list[StatusCallback] = []
        self._lock = threading.Lock()
        self.control_packet: Packet | None = None

        if status_callback:
            self.add_listener(status_callback)

    @classmethod
    def open(
        cls,
        config: RconConfig,
        transport: BaseTransport | None = None,
        status_callback: StatusCallback | None = None,
    ) -> "RconSession":
        """建立连接并完成认证，返回可直接使用的会话。

        Raises:
            AddressParseError: 地址格式无效。
            ConnectError: 连接失败或超时。
            AuthError: 密码被拒绝。
            AuthProtocolError: 服务器不兼容。
            NetworkError: 其他 I/O 失败。
        """
        session = cls(config, transport, status_callback)
        try:
            session.connect()
            session.login()
        except BaseException:
            session.close()
            raise
        return session

    @property
    def state(self) -> SessionState:
        """获取当前会话状态的只读副本。"""
        return replace(self._state)

    def add_listener(self, callback: StatusCallback) -> None:
        """注册状态变更监听器。"""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: StatusCallback) -> None:
        """移除状态变更监听器。"""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def connect(self) -> None:
        """建立 TCP 连接。已提供 transport 时直接跳过。

        Raises:
            AddressParseError: 地址格式无效。
            ConnectError: 连接失败或超时。
        """
        if self.transport is not None and self.transport.is_open:
            return

        self._update_status(SessionStatus.CONNECTING, f"正在连接 {self.config.address}...")
        try:
            transport = TcpTransport.from_address(self.config.address)
            transport.connect(self.config.connect_timeout)
        except RconError as e:
            self._fail(f"连接失败: {e}")
            raise

        self.transport = transport

    def login(self, timeout: float | None = None) -> None:
        """执行认证握手并准备哨兵包。

        Args:
            timeout: 握手时限，None 时使用 config.io_timeout。

        Raises:
            ValueError: timeout 不是正数。
            AuthError: 密码被拒绝。
            AuthProtocolError: 服务器没有给出有效的认证响应。
            NetworkError: 网络通信失败或超时。
        """
        if self._state.is_ready:
            logger.warning("当前已认证，跳过登录")
            return
        transport = self._require_transport()

        budget = self._resolve_timeout(timeout)
        self._update_status(SessionStatus.AUTHENTICATING, "正在认证...")
        try:
            # 哨兵命令过长时在握手前就失败
            control = build_control_packet(self.config.control_id, self.config.safe_command)
            self._state.handshake = perform_handshake(
                transport,
                self.config.password,
                self.config.login_id,
                budget,
            )
        except AuthError as ae:
            self._state.handshake = HandshakeState.REJECTED
            self._fail(f"认证被拒绝: {ae}")
            raise
        except AuthProtocolError as pe:
            self._state.handshake = HandshakeState.PROTOCOL_ERROR
            self._fail(f"认证异常: {pe}")
            raise
        except RconError as e:
            self._fail(f"认证过程中断: {e}")
            raise

        self.control_packet = control
        self._update_status(SessionStatus.READY, "认证成功")

    def execute(self, command: str, timeout: float | None = None) -> str:
        """执行一条命令并返回重组后的完整响应。

        多线程同时调用时按获取锁的顺序依次执行。

        Args:
            command: 命令文本 (编码后不超过 4086 字节)。
            timeout: 本次执行的总时限，None 时使用 config.io_timeout。

        Returns:
            str: 完整响应文本。

        Raises:
            BodyTooLargeError: 命令过长 (不影响会话状态)。
            ValueError: timeout 不是正数 (不影响会话状态)。
            StateError: 会话未认证、已关闭或已损坏。
            NetworkError: 网络通信失败或超时 (会话随之损坏)。
            MalformedPacketError: 收到无法解析的数据帧 (会话随之损坏)。
        """
        # 构包或参数校验失败不会写出任何字节，会话保持可用
        packet = build_exec_packet(self.config.command_id, command)
        budget = self._resolve_timeout(timeout)

        with self._lock:
            if self._state.status is not SessionStatus.READY or self.control_packet is None:
                raise StateError(f"会话不可用 (状态 {self._state.status.name})")
            transport = self._require_transport()

            self._update_status(SessionStatus.BUSY, f"执行命令 ({len(packet.body_bytes)} 字节)")
            try:
                response = run_command(
                    transport,
                    packet,
                    self.control_packet,
                    budget,
                )
            except BaseException as e:
                # 数据流位置已未知 (包括被 KeyboardInterrupt 打断)，不能再继续复用这条连接
                self._fail(f"命令执行失败: {e!r}")
                raise

            self._state.commands_executed += 1
            self._update_status(SessionStatus.READY, f"命令完成 ({len(response)} 字符)")
            return response

    def close(self) -> None:
        """关闭连接并释放资源 (可重复调用)。"""
        if self.transport is not None:
            try:
                self.transport.close()
            except Exception as e:
                logger.warning(f"关闭连接时发生异常: {e}")
            finally:
                self.transport = None

        if self._state.status is not SessionStatus.CLOSED:
            self._update_status(SessionStatus.CLOSED, "已关闭")

    def __enter__(self) -> "RconSession":
        if not self._state.is_ready:
            try:
                self.connect()
                self.login()
            except BaseException:
                self.close()
                raise
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _resolve_timeout(self, timeout: float | None) -> float | None:
        """单次调用的时限，None 时回落到 config.io_timeout。"""
        if timeout is None:
            return self.config.io_timeout
        if timeout <= 0:
            raise ValueError(f"timeout 必须为正数: {timeout}")
        return timeout

    def _require_transport(self) -> BaseTransport:
        if self.transport is None or not self.transport.is_open:
            raise StateError("连接未建立或已关闭")
        return self.transport

    def _fail(self, msg: str) -> None:
        self._state.last_error = msg
        self._update_status(SessionStatus.ERROR, msg)

    def _update_status(self, status: SessionStatus, msg: str) -> None:
        """更新内部状态并同步触发所有回调。"""
        self._state.status = status
        if status is SessionStatus.ERROR:
            logger.error(f"[{status.name}] {msg}")
        elif status is SessionStatus.BUSY:
            logger.debug(f"[{status.name}] {msg}")
        else:
            logger.info(f"[{status.name}] {msg}")

        for callback in list(self._listeners):
            try:
                callback(status, msg)
            except Exception as e:
                logger.error(f"回调执行异常: {e}")
