# File: src/rcon_core/protocols/packets.py
"""
RCON 数据包编解码器 (Packet Codec)

负责单个数据包与字节流之间的相互转换。
本模块是无状态的 (Stateless)，不持有任何连接或会话信息；
读取时只依赖一个 "精确读取 n 字节" 的回调。

线上格式 (小端序有符号 32 位整数):
    size | id | type | body | 0x00 | 0x00
其中 size = len(body) + 10，size 字段本身不计入。
"""

import io
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import BinaryIO

from ..exceptions import BodyTooLargeError, MalformedPacketError, NetworkError
from . import constants
from .types import PacketKind, classify_as_request, classify_as_response

logger = logging.getLogger(__name__)

# 读取回调: 返回恰好 n 个字节，否则抛出 NetworkError
ReadExact = Callable[[int], bytes]


@dataclass(frozen=True)
class Packet:
    """单个 RCON 数据包 (不可变)。

    请通过 build_packet 及其便捷函数构造，以保证正文长度校验生效。

    Attributes:
        id: 包 ID，由调用方或协议分配。
        type: 类型码，含义取决于方向 (见 types 模块)。
        body: 正文文本，线上使用 UTF-8 编码。
    """

    id: int
    type: int
    body: str = ""
    _body_bytes: bytes = field(default=b"", init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for name in ("id", "type"):
            value = getattr(self, name)
            if not constants.INT32_MIN <= value <= constants.INT32_MAX:
                raise ValueError(f"{name} 超出 int32 范围: {value}")

        try:
            encoded = self.body.encode(constants.BODY_ENCODING)
        except UnicodeEncodeError as e:
            raise MalformedPacketError(f"正文无法编码为 UTF-8: {e}") from e
        if len(encoded) > constants.MAX_BODY_LEN:
            raise BodyTooLargeError(len(encoded), constants.MAX_BODY_LEN)
        object.__setattr__(self, "_body_bytes", encoded)

    @property
    def size(self) -> int:
        """size 字段的值: 正文字节数 + 10。"""
        return len(self._body_bytes) + constants.PACKET_OVERHEAD

    @property
    def body_bytes(self) -> bytes:
        """正文的线上编码。"""
        return self._body_bytes

    @property
    def response_kind(self) -> PacketKind:
        """将本包视为服务器响应时的逻辑类型。"""
        return classify_as_response(self.type)

    @property
    def request_kind(self) -> PacketKind:
        """将本包视为客户端请求时的逻辑类型。"""
        return classify_as_request(self.type)


# =========================================================================
# 构造 (Factories)
# =========================================================================


def build_packet(packet_id: int, type_code: int, body: str = "") -> Packet:
    """构造数据包，类型码不做限制。

    Raises:
        BodyTooLargeError: 正文编码后超过 4086 字节。
        MalformedPacketError: 正文含有无法编码的字符 (如孤立代理项)。
        ValueError: id 或 type 超出 int32 范围。
    """
    return Packet(id=packet_id, type=type_code, body=body)


def build_auth_packet(packet_id: int, password: str) -> Packet:
    """构造认证请求包 (SERVERDATA_AUTH, 3)。"""
    return build_packet(packet_id, PacketKind.AUTH_REQUEST.code, password)


def build_exec_packet(packet_id: int, command: str) -> Packet:
    """构造命令请求包 (SERVERDATA_EXECCOMMAND, 2)。"""
    return build_packet(packet_id, PacketKind.EXEC_REQUEST.code, command)


def build_response_value_packet(packet_id: int, value: str = "") -> Packet:
    """构造响应值包 (SERVERDATA_RESPONSE_VALUE, 0)。"""
    return build_packet(packet_id, PacketKind.VALUE_RESPONSE.code, value)


def build_response_auth_packet(packet_id: int, value: str = "") -> Packet:
    """构造认证响应包 (SERVERDATA_AUTH_RESPONSE, 2)。"""
    return build_packet(packet_id, PacketKind.AUTH_RESPONSE.code, value)


# =========================================================================
# 编码 (Serialize)
# =========================================================================


def serialize_packet(packet: Packet) -> bytes:
    """将数据包编码为线上字节。

    输出长度恒为 packet.size + 4。
    """
    header = constants.HEADER_STRUCT.pack(packet.size, packet.id, packet.type)
    return header + packet.body_bytes + constants.TERMINATOR


# =========================================================================
# 解码 (Deserialize)
# =========================================================================


def read_packet(read_exact: ReadExact) -> Packet:
    """从字节流中读取并解析一个完整的数据包。

    size 字段来自对端，先校验其范围再读取正文，避免无界分配。

    Args:
        read_exact: 精确读取 n 字节的回调，数据不足时必须抛出 NetworkError。

    Returns:
        Packet: 解析后的数据包。

    Raises:
        MalformedPacketError: size 越界、终止符错误或正文不是合法 UTF-8。
        BodyTooLargeError: 正文超过 4086 字节 (整帧已读完，字节流仍然对齐)。
        NetworkError: 字节流在数据包结束前中断。
    """
    header = read_exact(constants.HEADER_LEN)
    size, packet_id, type_code = constants.HEADER_STRUCT.unpack(header)

    if not constants.PACKET_OVERHEAD <= size <= constants.MAX_FRAME_SIZE:
        raise MalformedPacketError(
            f"size 字段越界: {size} (合法范围 {constants.PACKET_OVERHEAD}-{constants.MAX_FRAME_SIZE})"
        )

    body_len = size - constants.PACKET_OVERHEAD
    raw_body = read_exact(body_len) if body_len else b""
    terminator = read_exact(len(constants.TERMINATOR))

    if terminator != constants.TERMINATOR:
        raise MalformedPacketError(f"数据包终止符错误: {terminator.hex()}")

    try:
        body = raw_body.decode(constants.BODY_ENCODING)
    except UnicodeDecodeError as e:
        raise MalformedPacketError(f"正文不是合法的 UTF-8 文本: {e}") from e

    packet = build_packet(packet_id, type_code, body)
    logger.debug(
        "read_packet: id=%d type=%d size=%d", packet.id, packet.type, packet.size
    )
    return packet


def parse_packet(data: bytes) -> Packet:
    """解析内存中一个完整的数据帧。

    Raises:
        MalformedPacketError: 帧结构错误，或帧之后还有多余字节。
        NetworkError: 数据不足一个完整帧。
    """
    stream = io.BytesIO(data)
    packet = read_packet(_stream_reader(stream))
    if stream.tell() != len(data):
        raise MalformedPacketError(f"数据帧后存在 {len(data) - stream.tell()} 字节多余数据")
    return packet


def _stream_reader(stream: BinaryIO) -> ReadExact:
    """将类文件对象包装为 ReadExact 回调。"""

    def read_exact(n: int) -> bytes:
        data = stream.read(n)
        if len(data) != n:
            raise NetworkError(f"数据流提前结束: 需要 {n} 字节，实际 {len(data)} 字节")
        return data

    return read_exact
