"""
RCON 命令执行与多包响应重组 (Execute / Reassembly)

协议允许一个命令的响应拆成多个数据包，却没有 "响应结束" 标记。
做法是在每个命令之后紧跟一个哨兵包 (control packet)：服务器按接收顺序
处理请求，且哨兵请求恰好只产生一个响应包，因此收到哨兵 ID 的响应时，
之前收到的所有包就是命令的完整响应。

    发送 命令包 (command_id)
    发送 哨兵包 (control_id)
    循环接收: 非哨兵 ID -> 累加正文；哨兵 ID -> 结束

服务器按序、不交错地回复是协议的非正式约定，客户端不做校验。
"""

import logging

from ..network import BaseTransport
from ..utils import Deadline
from . import packets

logger = logging.getLogger(__name__)


def build_control_packet(control_id: int, safe_command: str | None = None) -> packets.Packet:
    """构建会话的哨兵包。

    Args:
        control_id: 哨兵专用包 ID。
        safe_command: 保证只产生一个响应包的命令；为 None 时使用空的
            RESPONSE_VALUE 包 (服务器会原样回一个 RESPONSE_VALUE)。

    Returns:
        Packet: 哨兵包。
    """
    if safe_command is not None:
        return packets.build_exec_packet(control_id, safe_command)
    return packets.build_response_value_packet(control_id, "")


class ResponseAssembler:
    """按哨兵 ID 判断边界的响应重组器 (无 I/O)。"""

    def __init__(self, control_id: int) -> None:
        self.control_id = control_id
        self._fragments: list[str] = []
        self.done = False

    @property
    def fragment_count(self) -> int:
        return len(self._fragments)

    def feed(self, packet: packets.Packet) -> bool:
        """输入一个收到的数据包。

        Returns:
            bool: 收到哨兵响应、重组结束时返回 True。
        """
        if self.done:
            raise RuntimeError("响应已重组完成，不能继续输入")

        if packet.id == self.control_id:
            # 哨兵响应的正文没有意义
            self.done = True
        else:
            self._fragments.append(packet.body)
        return self.done

    def result(self) -> str:
        if not self.done:
            raise RuntimeError("尚未收到哨兵响应")
        return "".join(self._fragments)


def run_command(
    transport: BaseTransport,
    command: packets.Packet,
    control: packets.Packet,
    timeout: float | None = None,
) -> str:
    """发送命令与哨兵包，并重组完整响应。

    调用方必须保证同一连接上同时只有一个命令在执行。
    任何异常都会丢弃已收到的部分响应。

    Args:
        transport: 已认证的字节流。
        command: 命令包。
        control: 哨兵包，ID 必须与命令包不同。
        timeout: 整个命令 (发送 + 重组) 的时限，None 表示不限。

    Returns:
        str: 所有响应片段按接收顺序直接拼接的结果。

    Raises:
        NetworkError: 网络通信失败或超时。
        MalformedPacketError: 收到无法解析的数据帧。
    """
    if command.id == control.id:
        raise ValueError(f"命令包与哨兵包 ID 相同: {command.id}")

    deadline = Deadline(timeout)
    assembler = ResponseAssembler(control.id)

    # 先完整写出命令包，再写哨兵包，之后才开始读取
    transport.send(packets.serialize_packet(command), deadline.remaining())
    transport.send(packets.serialize_packet(control), deadline.remaining())

    while not assembler.done:
        reply = packets.read_packet(
            lambda n: transport.receive_exact(n, deadline.remaining())
        )
        assembler.feed(reply)

    logger.debug(f"命令响应重组完成: {assembler.fragment_count} 个片段")
    return assembler.result()
