# src/rcon_core/network.py
"""
RCON 核心库 - 网络模块 (Network)

封装 TCP Socket 的连接、发送和接收逻辑。
该模块屏蔽了底层 Socket 的复杂性，向协议层提供纯粹的 bytes 收发接口：
协议层只依赖 BaseTransport，测试中可以用内存实现替换。
"""

import abc
import ipaddress
import logging
import socket

from .exceptions import (
    AddressParseError,
    ConnectError,
    ConnectTimeoutError,
    NetworkError,
    NetworkTimeoutError,
)
from .utils import Deadline

logger = logging.getLogger(__name__)

# 单次 recv 的最大读取量
RECV_CHUNK_SIZE = 65536


def parse_address(address: str) -> tuple[str, int]:
    """解析 `host:port` 形式的服务器地址。

    支持:
    1. IPv4: `127.0.0.1:27015`
    2. IPv6 (方括号): `[::1]:27015`
    3. 主机名: `localhost:25575` (解析推迟到连接阶段)

    Args:
        address: 地址字符串。

    Returns:
        tuple[str, int]: (host, port)。

    Raises:
        AddressParseError: 地址格式无效。
    """
    text = address.strip()
    host, sep, port_text = text.rpartition(":")
    if not sep or not host:
        raise AddressParseError(address, "缺少端口")

    try:
        port = int(port_text)
    except ValueError:
        raise AddressParseError(address, f"端口不是数字: '{port_text}'") from None
    if not 0 < port < 65536:
        raise AddressParseError(address, f"端口越界: {port}")

    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
        try:
            ipaddress.IPv6Address(host)
        except ValueError:
            raise AddressParseError(address, "IPv6 地址无效") from None
    elif ":" in host:
        # 未加方括号的 IPv6 无法与端口区分
        raise AddressParseError(address, "IPv6 地址需要使用方括号")
    elif not host or any(c.isspace() for c in host):
        raise AddressParseError(address, "主机名无效")

    return host, port


class BaseTransport(abc.ABC):
    """有序、阻塞的字节流抽象。

    所有方法的 timeout 参数为 None 表示无限等待。
    """

    @abc.abstractmethod
    def send(self, data: bytes, timeout: float | None = None) -> None:
        """完整写出 data。

        Raises:
            NetworkError: 写入失败或连接已关闭。
            NetworkTimeoutError: 超时。
        """
        raise NotImplementedError

    @abc.abstractmethod
    def receive_exact(self, size: int, timeout: float | None = None) -> bytes:
        """精确读取 size 个字节。

        Raises:
            NetworkError: 读取失败，或在读满之前连接被关闭。
            NetworkTimeoutError: 超时。
        """
        raise NotImplementedError

    @abc.abstractmethod
    def close(self) -> None:
        """关闭字节流 (可重复调用)。"""
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def is_open(self) -> bool:
        raise NotImplementedError

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class TcpTransport(BaseTransport):
    """
    基于阻塞 TCP Socket 的 Transport 实现。
    """

    def __init__(self, host: str, port: int) -> None:
        self.host = host
        self.port = port
        self.sock: socket.socket | None = None

    @classmethod
    def from_address(cls, address: str) -> "TcpTransport":
        """由 `host:port` 字符串创建 (尚未连接)。"""
        host, port = parse_address(address)
        return cls(host, port)

    @property
    def is_open(self) -> bool:
        return self.sock is not None

    def connect(self, timeout: float | None = None) -> None:
        """
        建立 TCP 连接。

        Raises:
            ConnectTimeoutError: 在 timeout 秒内未能连接。
            ConnectError: 连接被拒绝、主机名无法解析等。
        """
        target = (self.host, self.port)
        try:
            sock = socket.create_connection(target, timeout=timeout)
        except TimeoutError as e:
            raise ConnectTimeoutError(f"连接超时 {target} ({timeout}s)") from e
        except OSError as e:
            raise ConnectError(f"连接失败 {target}: {e}") from e

        # 之后的读写各自设置超时
        sock.settimeout(None)
        self.sock = sock
        logger.debug(f"TCP 连接已建立: {target}")

    def send(self, data: bytes, timeout: float | None = None) -> None:
        sock = self._require_socket()
        try:
            sock.settimeout(timeout)
            sock.sendall(data)
        except TimeoutError as e:
            raise NetworkTimeoutError(f"发送超时 ({timeout}s)") from e
        except OSError as e:
            raise NetworkError(f"发送失败: {e}") from e

    def receive_exact(self, size: int, timeout: float | None = None) -> bytes:
        sock = self._require_socket()
        deadline = Deadline(timeout)
        buf = bytearray()

        while len(buf) < size:
            try:
                sock.settimeout(deadline.remaining())
                chunk = sock.recv(min(size - len(buf), RECV_CHUNK_SIZE))
            except TimeoutError as e:
                raise NetworkTimeoutError(f"接收超时 ({timeout}s)") from e
            except OSError as e:
                raise NetworkError(f"接收错误: {e}") from e

            if not chunk:
                raise NetworkError(
                    f"连接已被对端关闭 (需要 {size} 字节，已收到 {len(buf)} 字节)"
                )
            buf.extend(chunk)

        return bytes(buf)

    def close(self) -> None:
        """关闭 Socket"""
        if self.sock is not None:
            try:
                self.sock.close()
            finally:
                self.sock = None
                logger.debug("TCP 连接已关闭")

    def _require_socket(self) -> socket.socket:
        if self.sock is None:
            raise NetworkError("Transport 未连接或已关闭")
        return self.sock
