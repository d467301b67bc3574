# src/rcon_core/protocols/constants.py
"""
RCON 协议常量表 (Constants)

仅定义协议的结构性常量（类型码、长度、帧格式）。
不包含任何会话相关的默认值（如登录 ID、哨兵 ID），这些应由 Config 注入。
"""

import struct


# =========================================================================
# 类型码 (Type Codes)
# =========================================================================
class Code:
    """数据包头部的 Type 字段定义。

    注意 2 同时出现在请求与响应两侧，解释时必须先确定方向。
    """

    RESPONSE_VALUE = 0  # SERVERDATA_RESPONSE_VALUE (Server -> Client)
    EXEC_COMMAND = 2  # SERVERDATA_EXECCOMMAND (Client -> Server)
    AUTH_RESPONSE = 2  # SERVERDATA_AUTH_RESPONSE (Server -> Client)
    AUTH = 3  # SERVERDATA_AUTH (Client -> Server)


# =========================================================================
# 帧结构 (Frame Structure)
# =========================================================================
# 头部: size + id + type，均为小端序有符号 32 位整数
HEADER_FORMAT = "<iii"
HEADER_STRUCT = struct.Struct(HEADER_FORMAT)
HEADER_LEN = HEADER_STRUCT.size  # 12

# size 字段本身不计入 size
SIZE_FIELD_LEN = 4

# 正文之后的两个终止符: 字符串结尾 + 包结尾
TERMINATOR = b"\x00\x00"

# size = 正文长度 + 4 (id) + 4 (type) + 1 + 1
PACKET_OVERHEAD = 10

# 单包总大小上限 4096，扣除固定开销后的正文上限
MAX_PACKET_SIZE = 4096
MAX_BODY_LEN = MAX_PACKET_SIZE - PACKET_OVERHEAD  # 4086

# 读取对端数据帧时 size 字段的上限。正文最多按 4096 字节读入，
# 超出 4086 的部分在构包时报 BodyTooLargeError
MAX_FRAME_SIZE = MAX_PACKET_SIZE + PACKET_OVERHEAD  # 4106

# 认证失败时服务器在 AUTH_RESPONSE 中回写的 ID
AUTH_REJECTED_ID = -1

# 有符号 32 位整数范围
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

# 正文编码
BODY_ENCODING = "utf-8"
