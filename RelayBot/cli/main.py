"""
CLI 主入口 - 使用 Click 框架
CLI main entry - using Click framework.
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import click

from RelayBot.config.manager import CONFIG_FILE, ConfigManager
from RelayBot.exceptions import ConfigError

config_option = click.option(
    "--config",
    "config_path",
    default=CONFIG_FILE,
    show_default=True,
    help="配置文件路径 / Config file path",
)


@click.group()
def cli() -> None:
    """RelayBot - 可插拔的聊天机器人运行时"""
    pass


@cli.command()
@config_option
@click.option("--log-level", default=None, help="日志级别（覆盖配置） / Log level override")
def run(config_path: str, log_level: str | None) -> None:
    """启动 RelayBot / Start RelayBot."""
    from RelayBot.kernel.bootstrap import Bootstrap
    from RelayBot.kernel.logging import get_logger

    logger = get_logger("cli")
    bootstrap = Bootstrap(config_path=config_path, log_level=log_level)

    async def main() -> None:
        try:
            await bootstrap.start()
        except Exception:
            await bootstrap.shutdown()
            raise
        await bootstrap.run_forever()

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("收到键盘中断信号")
    except Exception:
        logger.exception("致命错误")
        sys.exit(1)


@cli.command()
@config_option
def init(config_path: str) -> None:
    """初始化配置 / Initialize configuration."""
    from RelayBot.config.defaults import build_default_config

    os.makedirs(os.path.dirname(config_path) or ".", exist_ok=True)

    if os.path.exists(config_path):
        click.echo(f"配置文件已存在: {config_path}")
        if not click.confirm("是否覆盖?"):
            return

    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(build_default_config(), f, ensure_ascii=False, indent=2)

    click.echo(f"配置文件已创建: {config_path}")


@cli.command()
def version() -> None:
    """显示版本信息 / Show version info."""
    from RelayBot import __app_name__, __version__

    click.echo(f"{__app_name__} v{__version__}")


@cli.group()
def conf() -> None:
    """配置管理 / Configuration management."""
    pass


@conf.command("show")
@click.argument("key", required=False)
@config_option
def conf_show(key: str | None, config_path: str) -> None:
    """显示配置 / Show configuration."""
    if not os.path.exists(config_path):
        click.echo("配置文件不存在，请先运行 init")
        return

    config = asyncio.run(_load_config(config_path)).as_dict()

    if key:
        current = config
        for k in key.split("."):
            if isinstance(current, dict) and k in current:
                current = current[k]
            else:
                click.echo(f"键 '{key}' 不存在")
                return

        click.echo(json.dumps(current, ensure_ascii=False, indent=2))
    else:
        click.echo(json.dumps(config, ensure_ascii=False, indent=2))


@conf.command("set")
@click.argument("key")
@click.argument("value")
@config_option
def conf_set(key: str, value: str, config_path: str) -> None:
    """
    修改配置项，VALUE 按 JSON 解析，失败时按字符串保存
    Set a config value; VALUE is parsed as JSON, else kept as a string.
    """
    try:
        parsed: Any = json.loads(value)
    except json.JSONDecodeError:
        parsed = value

    async def apply() -> None:
        manager = await _load_config(config_path)
        manager.set(key, parsed)
        try:
            await manager.save()
        except ConfigError as exc:
            raise click.ClickException(str(exc)) from exc

    asyncio.run(apply())
    click.echo(f"{key} = {json.dumps(parsed, ensure_ascii=False)}")


async def _load_config(config_path: str) -> ConfigManager:
    from RelayBot.config.defaults import build_default_config

    manager = ConfigManager(defaults=build_default_config(), config_path=config_path)
    try:
        await manager.load()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    return manager


@cli.group()
def store() -> None:
    """数据存储 / Data store inspection."""
    pass


async def _with_store(
    config_path: str, namespace: str, action: Callable[[Any], Awaitable[Any]]
) -> Any:
    from RelayBot.store.engine import StorageEngine
    from RelayBot.store.kv import DataStore

    config = await _load_config(config_path)
    engine = StorageEngine(
        config.get("store.db_path", "data/relaybot.db"),
        case_sensitive_like=bool(config.get("store.case_sensitive_like", False)),
    )
    try:
        data_store = DataStore(engine, namespace)
        await data_store.initialize()
        return await action(data_store)
    finally:
        await engine.dispose()


@store.command("keys")
@click.argument("namespace")
@config_option
def store_keys(namespace: str, config_path: str) -> None:
    """列出命名空间中的所有键 / List every key in a namespace."""
    keys = asyncio.run(_with_store(config_path, namespace, lambda s: s.get_all_keys()))
    if not keys:
        click.echo("（空）")
        return
    for key in sorted(keys):
        click.echo(key)


@store.command("count")
@click.argument("namespace")
@click.argument("pattern", default="%")
@config_option
def store_count(namespace: str, pattern: str, config_path: str) -> None:
    """统计匹配模式的记录数 / Count records matching a key pattern."""
    count = asyncio.run(
        _with_store(config_path, namespace, lambda s: s.get_count(pattern))
    )
    click.echo(str(count))


def run_cli(args: list[str] | None = None) -> int:
    """执行 CLI 并返回进程退出码。"""
    try:
        result = cli.main(args=args, standalone_mode=False)
    except click.exceptions.Exit as exc:
        return exc.exit_code
    except click.exceptions.Abort:
        click.echo("已取消", err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    return result if isinstance(result, int) else 0


if __name__ == "__main__":
    cli()
