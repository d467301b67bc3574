# File: src/rcon_core/exceptions.py
"""
RCON 核心库 - 异常体系 (Exceptions)

定义库内统一使用的异常类，以便上层应用（如 CLI/GUI）能进行精细的错误处理。
所有异常都直接抛给调用者，库内部不做任何重试。
"""


class RconError(Exception):
    """RCON 核心库的所有内部异常的基类。

    上层应用可以通过捕获此异常来处理所有由 rcon-core 抛出的已知错误。
    """

    pass


class ConfigError(RconError):
    """配置加载或校验失败。

    触发场景:
    1. 缺少必要字段 (如 address/password)。
    2. 字段格式错误 (如超时时间不是数字、包 ID 超出 int32 范围)。
    3. 找不到配置文件或环境变量。
    """

    pass


class AddressParseError(ConfigError):
    """服务器地址无法解析为合法的 `host:port` 形式。"""

    def __init__(self, address: str, reason: str = "") -> None:
        self.address = address
        detail = f" ({reason})" if reason else ""
        super().__init__(f"无法解析服务器地址 '{address}'{detail}")


class BodyTooLargeError(RconError):
    """数据包正文超出协议上限 (4086 字节)。

    在构造数据包时抛出 (命令、密码或响应正文)，而不是在网络层。
    """

    def __init__(self, length: int, limit: int) -> None:
        self.length = length
        self.limit = limit
        super().__init__(f"数据包正文过大: {length} 字节 (上限 {limit} 字节)")


class NetworkError(RconError):
    """网络层面的错误 (I/O 级别)。

    触发场景:
    1. 连接建立失败。
    2. 发送 (send) 或 接收 (recv) 失败。
    3. 对端意外断开 (读到 EOF)。
    4. 操作超时。
    """

    pass


class ConnectError(NetworkError):
    """TCP 连接无法建立。"""

    pass


class ConnectTimeoutError(ConnectError):
    """TCP 连接在给定时限内未能建立。"""

    pass


class NetworkTimeoutError(NetworkError):
    """握手或命令执行在给定时限内未完成。"""

    pass


class ProtocolError(RconError):
    """协议交互错误 (逻辑级别)。

    触发场景:
    1. 数据包长度字段越界或结构损坏。
    2. 数据包结尾的两个空字节缺失。
    3. 服务器没有按照任何已知方式回复认证请求。
    """

    pass


class MalformedPacketError(ProtocolError):
    """收到的数据帧无法解析 (长度不合法、正文不是合法文本、终止符错误)。"""

    pass


class AuthProtocolError(ProtocolError):
    """服务器没有按照任何一种已知顺序返回认证响应。

    与 AuthError 区分: 这意味着服务器不兼容，而不是密码错误。
    """

    pass


class AuthError(RconError):
    """认证被拒绝 (业务层面的失败)。

    服务器返回了认证响应，但包 ID 与登录请求不一致 (RCON 用 -1 表示拒绝)。
    这通常意味着密码错误，需要用户干预。
    """

    def __init__(self, message: str, response_id: int | None = None) -> None:
        """初始化认证错误。

        Args:
            message: 错误描述信息。
            response_id: 服务器认证响应中携带的包 ID。
        """
        super().__init__(message)
        self.response_id = response_id


class StateError(RconError):
    """会话状态错误。

    触发场景:
    1. 在未登录或已关闭的会话上执行命令。
    2. 上一次命令执行中途失败，数据流位置未知，会话已不可用。
    """

    pass
