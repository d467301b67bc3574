# src/rcon_core/__init__.py
"""
RCON-Core v1.0.0
同步、可超时的 RCON (控制台远程命令协议) 客户端核心库。
"""

# 暴露核心配置
from .config import (
    RconConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
)

# 暴露会话与状态
from .core import RconSession

# 暴露异常体系 (方便上层 try-except)
from .exceptions import (
    AddressParseError,
    AuthError,
    AuthProtocolError,
    BodyTooLargeError,
    ConfigError,
    ConnectError,
    ConnectTimeoutError,
    MalformedPacketError,
    NetworkError,
    NetworkTimeoutError,
    ProtocolError,
    RconError,
    StateError,
)
from .network import BaseTransport, TcpTransport
from .state import HandshakeState, SessionState, SessionStatus

__version__ = "1.0.0"

__all__ = [
    "RconSession",
    "RconConfig",
    "SessionState",
    "SessionStatus",
    "HandshakeState",
    "BaseTransport",
    "TcpTransport",
    "create_config_from_dict",
    "load_config_from_env",
    "load_config_from_toml",
    "RconError",
    "ConfigError",
    "AddressParseError",
    "BodyTooLargeError",
    "NetworkError",
    "ConnectError",
    "ConnectTimeoutError",
    "NetworkTimeoutError",
    "ProtocolError",
    "MalformedPacketError",
    "AuthError",
    "AuthProtocolError",
    "StateError",
]
