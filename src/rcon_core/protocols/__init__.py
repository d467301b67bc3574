# src/rcon_core/protocols/__init__.py
"""
RCON 协议层 (Protocol Layer)

- constants / types / packets: 纯粹的编解码与类型分类，不包含任何 I/O。
- handshake / execute: 基于 BaseTransport 的认证与命令重组流程。
- 不包含任何会话状态管理 (State)，不依赖于 core 层。
"""

from . import constants
from .execute import ResponseAssembler, build_control_packet, run_command
from .handshake import AuthHandshake, perform_handshake
from .packets import (
    Packet,
    build_auth_packet,
    build_exec_packet,
    build_packet,
    build_response_auth_packet,
    build_response_value_packet,
    parse_packet,
    read_packet,
    serialize_packet,
)
from .types import (
    Direction,
    PacketKind,
    classify,
    classify_as_request,
    classify_as_response,
)

# 公共 API
__all__ = [
    "constants",
    "Packet",
    "build_packet",
    "build_auth_packet",
    "build_exec_packet",
    "build_response_value_packet",
    "build_response_auth_packet",
    "serialize_packet",
    "read_packet",
    "parse_packet",
    "Direction",
    "PacketKind",
    "classify",
    "classify_as_request",
    "classify_as_response",
    "AuthHandshake",
    "perform_handshake",
    "ResponseAssembler",
    "build_control_packet",
    "run_command",
]
