"""
RCON 核心库 - 配置模块

负责配置的加载、解析与强类型转换。
支持从 TOML 文件、环境变量 (含 .env 文件) 或字典中加载配置。
"""

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .exceptions import ConfigError
from .protocols import constants
from .utils import mask_secret

logger = logging.getLogger(__name__)

# 默认保留 ID
DEFAULT_LOGIN_ID = 0
DEFAULT_COMMAND_ID = 0
DEFAULT_CONTROL_ID = -1


@dataclass(frozen=True)
class RconConfig:
    """RconSession 的强类型配置对象。

    所有字段均为只读 (frozen=True)，确保配置在运行时不可变。
    保留 ID 是每个会话自己的配置，而不是模块级全局常量。

    Attributes:
        address: 服务器地址 (`host:port`)。
        password: RCON 密码。
        safe_command: 哨兵命令，必须保证服务器只回复一个数据包；
            为 None 时改用空 RESPONSE_VALUE 包作为哨兵。
        connect_timeout: 建立 TCP 连接的时限 (秒)，None 表示不限。
        io_timeout: 握手与单次命令执行的默认时限 (秒)，None 表示不限。
        login_id: 认证请求使用的包 ID。
        command_id: 普通命令复用的包 ID。
        control_id: 哨兵包 ID，必须与 command_id 不同。
    """

    address: str
    password: str
    safe_command: str | None = None
    connect_timeout: float | None = None
    io_timeout: float | None = None
    login_id: int = DEFAULT_LOGIN_ID
    command_id: int = DEFAULT_COMMAND_ID
    control_id: int = DEFAULT_CONTROL_ID

    def __post_init__(self) -> None:
        for name in ("login_id", "command_id", "control_id"):
            value = getattr(self, name)
            if not constants.INT32_MIN <= value <= constants.INT32_MAX:
                raise ConfigError(f"{name} 超出 int32 范围: {value}")
        if self.control_id == self.command_id:
            raise ConfigError(
                f"control_id 与 command_id 不能相同 (均为 {self.command_id})"
            )
        if self.login_id == constants.AUTH_REJECTED_ID:
            # 服务器用 -1 表示密码错误，登录 ID 不能与之混淆
            raise ConfigError(f"login_id 不能为 {constants.AUTH_REJECTED_ID}")
        for name in ("connect_timeout", "io_timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ConfigError(f"{name} 必须为正数: {value}")

    def __repr__(self) -> str:
        """
        覆盖默认的 repr，隐藏密码字段，防止日志泄露敏感信息。
        """
        return (
            f"<{self.__class__.__name__} "
            f"address='{self.address}', "
            f"password='{mask_secret(self.password)}', "
            f"safe_command={self.safe_command!r}, "
            f"connect_timeout={self.connect_timeout}, "
            f"io_timeout={self.io_timeout}>"
        )


def create_config_from_dict(raw_data: dict[str, Any]) -> RconConfig:
    """通用工厂：将字典转换为强类型配置对象。

    负责字段的清洗、默认值注入和类型转换。

    Args:
        raw_data: 原始配置字典 (来自 TOML 或 Env)。

    Returns:
        RconConfig: 验证并转换后的配置对象。

    Raises:
        ConfigError: 当必要字段缺失或格式错误时抛出。
    """
    try:
        # --- 内部辅助函数 ---
        def _req(key: str) -> Any:
            """获取必要字段，缺失则报错"""
            if key not in raw_data or raw_data[key] in (None, ""):
                raise ConfigError(f"配置缺失: 缺少必要字段 '{key}'")
            return raw_data[key]

        def _to_timeout(key: str) -> float | None:
            """超时字段: 缺失、空串或 0 表示不限时。"""
            val = raw_data.get(key)
            if val in (None, ""):
                return None
            try:
                seconds = float(val)
            except (TypeError, ValueError):
                raise ConfigError(f"超时格式无效 '{key}': {val}")
            if seconds < 0:
                raise ConfigError(f"超时不能为负数 '{key}': {val}")
            return seconds or None

        def _to_id(key: str, default: int) -> int:
            val = raw_data.get(key)
            if val in (None, ""):
                return default
            try:
                return int(val)
            except (TypeError, ValueError):
                raise ConfigError(f"包 ID 格式无效 '{key}': {val}")

        safe_command = raw_data.get("safe_command")

        # --- 构建对象 ---
        return RconConfig(
            address=str(_req("address")).strip(),
            password=str(_req("password")),
            safe_command=str(safe_command) if safe_command not in (None, "") else None,
            connect_timeout=_to_timeout("connect_timeout"),
            io_timeout=_to_timeout("io_timeout"),
            login_id=_to_id("login_id", DEFAULT_LOGIN_ID),
            command_id=_to_id("command_id", DEFAULT_COMMAND_ID),
            control_id=_to_id("control_id", DEFAULT_CONTROL_ID),
        )

    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(f"配置生成失败: {e}") from e


def load_config_from_toml(file_path: Path, profile: str = "default") -> RconConfig:
    """从 TOML 文件加载配置。

    支持多层级查找策略:
    1. [profile.xxx]: 优先查找指定的 profile 块。
    2. [rcon]: 单服务器配置块。
    3. Root: 兼容根目录直接配置。

    Args:
        file_path: TOML 文件路径。
        profile: 配置预设名。默认为 "default"。

    Returns:
        RconConfig: 配置对象。

    Raises:
        ConfigError: 文件读取失败或 Profile 不存在。
    """
    if not file_path.exists():
        raise ConfigError(f"配置文件未找到: {file_path}")

    try:
        with open(file_path, "rb") as f:
            data = tomllib.load(f)
    except Exception as e:
        raise ConfigError(f"读取 TOML 失败: {e}") from e

    if "profile" in data:
        if profile not in data["profile"]:
            raise ConfigError(f"未找到预设: [profile.{profile}]")
        raw_config = data["profile"][profile]
    elif "rcon" in data:
        if profile != "default":
            logger.warning(f"配置仅包含 [rcon] 节，忽略 profile='{profile}'。")
        raw_config = data["rcon"]
    else:
        raw_config = data

    return create_config_from_dict(raw_config)


def load_config_from_env(dotenv_path: Path | None = None) -> RconConfig:
    """从环境变量加载配置 (Docker/Cloud Friendly)。

    先加载 .env 文件 (不覆盖已有环境变量)，再读取所有以 `RCON_` 开头的变量。
    例如: `RCON_PASSWORD` -> `password`。

    Args:
        dotenv_path: .env 文件路径；为 None 时按 python-dotenv 的规则自动查找。

    Returns:
        RconConfig: 配置对象。

    Raises:
        ConfigError: 未检测到任何相关环境变量。
    """
    if dotenv_path is not None and not dotenv_path.exists():
        raise ConfigError(f".env 文件未找到: {dotenv_path}")
    load_dotenv(dotenv_path=dotenv_path, override=False)

    # 字段映射表 (Config Field -> Env Suffix)
    env_map = {
        "address": "ADDRESS",
        "password": "PASSWORD",
        "safe_command": "SAFE_COMMAND",
        "connect_timeout": "CONNECT_TIMEOUT",
        "io_timeout": "IO_TIMEOUT",
        "login_id": "LOGIN_ID",
        "command_id": "COMMAND_ID",
        "control_id": "CONTROL_ID",
    }

    raw_data = {}

    for cfg_key, env_suffix in env_map.items():
        val = os.environ.get(f"RCON_{env_suffix}")
        if val is not None:
            raw_data[cfg_key] = val

    if not raw_data:
        raise ConfigError("未检测到 RCON_ 前缀的环境变量")

    return create_config_from_dict(raw_data)
