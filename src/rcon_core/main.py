# src/rcon_core/main.py
"""
RCON-Core 命令行入口

用法:
    rcon-core --config config.toml "status" "users"
    rcon-core --address 127.0.0.1:27015 --password secret   # 交互模式

未指定 --config 时从环境变量 (RCON_*) 及 .env 文件加载配置。
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from . import __version__
from .config import RconConfig, load_config_from_env, load_config_from_toml
from .core import RconSession
from .exceptions import AuthError, ConfigError, RconError

logger = logging.getLogger("rcon_core.cli")

EXIT_OK = 0
EXIT_RUNTIME_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_AUTH_REJECTED = 3

PROMPT = "rcon> "
EXIT_WORDS = {"exit", "quit"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rcon-core",
        description="RCON 客户端: 认证后执行命令并打印完整响应。",
    )
    parser.add_argument("commands", nargs="*", help="依次执行的命令；为空时进入交互模式")
    parser.add_argument("-c", "--config", type=Path, help="TOML 配置文件路径")
    parser.add_argument("-p", "--profile", default="default", help="TOML 配置预设名")
    parser.add_argument("--env-file", type=Path, help=".env 文件路径")
    parser.add_argument("-a", "--address", help="服务器地址 host:port (覆盖配置)")
    parser.add_argument("--password", help="RCON 密码 (覆盖配置)")
    parser.add_argument("--safe-command", help="哨兵命令 (覆盖配置)")
    parser.add_argument("-t", "--timeout", type=float, help="连接与命令时限，单位秒")
    parser.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_config(args: argparse.Namespace) -> RconConfig:
    """按命令行参数加载配置，并应用覆盖项。

    Raises:
        ConfigError: 配置缺失或格式错误。
    """
    if args.config:
        config = load_config_from_toml(args.config, args.profile)
    elif args.address and args.password:
        config = RconConfig(address=args.address, password=args.password)
    else:
        config = load_config_from_env(args.env_file)

    overrides = {}
    if args.address:
        overrides["address"] = args.address
    if args.password:
        overrides["password"] = args.password
    if args.safe_command:
        overrides["safe_command"] = args.safe_command
    if args.timeout:
        overrides["connect_timeout"] = args.timeout
        overrides["io_timeout"] = args.timeout

    return replace(config, **overrides) if overrides else config


def run_interactive(session: RconSession) -> None:
    """交互模式: 逐行读取命令，直到 EOF 或 exit。"""
    while True:
        try:
            line = input(PROMPT)
        except EOFError:
            print()
            return

        command = line.strip()
        if not command:
            continue
        if command.lower() in EXIT_WORDS:
            return
        print(session.execute(command))


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = load_config(args)
    except ConfigError as ce:
        logger.error(f"配置错误: {ce}")
        return EXIT_CONFIG_ERROR

    logger.debug(f"配置加载完成: {config!r}")

    try:
        with RconSession.open(config) as session:
            if args.commands:
                for command in args.commands:
                    print(session.execute(command))
            else:
                run_interactive(session)
    except AuthError as ae:
        logger.error(f"认证被拒绝: {ae}")
        return EXIT_AUTH_REJECTED
    except ConfigError as ce:
        logger.error(f"配置错误: {ce}")
        return EXIT_CONFIG_ERROR
    except RconError as e:
        logger.error(f"运行时异常: {e}")
        return EXIT_RUNTIME_ERROR
    except KeyboardInterrupt:
        logger.info("收到用户中断信号 (Ctrl+C)，退出。")

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
