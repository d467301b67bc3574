# example.py
"""
这是一个 RconSession API 的最小示例。

它演示了如何将 rcon-core 作为一个库导入到你自己的项目中，
完成 "连接 - 认证 - 执行命令 - 关闭" 的完整流程。

运行此示例：
1. 在根目录创建 .env 文件，至少包含 RCON_ADDRESS 与 RCON_PASSWORD。
2. 安装依赖： pip install -e .
3. 从项目根目录运行： python example.py status
"""

import logging
import sys

from rcon_core import (
    AuthError,
    ConfigError,
    RconError,
    RconSession,
    SessionStatus,
    load_config_from_env,
)

# 日志配置开始
logging.basicConfig(
    level=logging.DEBUG, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("RconExample")
# 日志配置结束


def on_status_change(status: SessionStatus, msg: str) -> None:
    print(f">>> [Callback] 状态变更: {status.name} | 消息: {msg}")


def main() -> int:
    """
    程序主入口点。
    从环境变量加载配置，依次执行命令行中给出的命令。
    """
    commands = sys.argv[1:] or ["help"]

    try:
        config = load_config_from_env()
    except ConfigError as ce:
        logger.error(f"配置错误: {ce}")
        return 2

    logger.info(f"配置加载完成: {config!r}")

    try:
        with RconSession.open(config, status_callback=on_status_change) as rcon:
            for command in commands:
                response = rcon.execute(command)
                print(f"--- {command} ---\n{response}")
    except AuthError as ae:
        logger.error(f"认证被拒绝: {ae}")
        return 3
    except RconError as e:
        logger.error(f"运行时异常: {e}")
        return 1

    logger.info("RCON 示例已结束。")
    return 0


# 程序入口
if __name__ == "__main__":
    sys.exit(main())
