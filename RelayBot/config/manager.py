"""
配置管理器 - 读写、合并并校验 RelayBot 的 JSON 配置
Config manager - reads, merges, validates and writes the RelayBot JSON config.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from typing import Any

from RelayBot.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE = os.path.join("data", "config", "relaybot_config.json")

# 顶层必须是对象的配置段
SECTIONS = ("log", "store", "messenger", "dispatch", "packs")


def merge_defaults(config: dict[str, Any], defaults: dict[str, Any]) -> None:
    """
    递归合并默认值到配置中（不覆盖已有值）
    Recursively merge defaults into config without overwriting user values.
    """
    for key, default_value in defaults.items():
        if key not in config:
            config[key] = copy.deepcopy(default_value)
        elif isinstance(default_value, dict) and isinstance(config[key], dict):
            merge_defaults(config[key], default_value)


def validate_config(config: dict[str, Any]) -> None:
    """
    校验存储、消息通道和分发配置段
    Validate the store, messenger and dispatch sections.

    Raises:
        ConfigError: 某个值的类型或取值不合法 / a value has the wrong type or range
    """
    for section in SECTIONS:
        if not isinstance(config.get(section), dict):
            raise ConfigError(f"配置段 {section!r} 必须是对象")

    db_path = config["store"].get("db_path")
    if not isinstance(db_path, str) or not db_path:
        raise ConfigError("store.db_path 必须是非空字符串")

    messenger = config["messenger"]
    if not isinstance(messenger.get("type"), str) or not messenger["type"]:
        raise ConfigError("messenger.type 必须是非空字符串")
    history_size = messenger.get("history_size", 200)
    if isinstance(history_size, bool) or not isinstance(history_size, int) or history_size < 1:
        raise ConfigError("messenger.history_size 必须是正整数")

    timeout = config["dispatch"].get("stage_timeout")
    if timeout is not None and (
        isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0
    ):
        raise ConfigError("dispatch.stage_timeout 必须为 null 或正数")


class ConfigManager:
    """
    配置管理器
    Config manager.

    加载时先合并默认值再校验，任何写回前也会重新校验。
    Defaults are merged and the result validated on load; every save
    validates again before writing.
    """

    def __init__(
        self,
        defaults: dict[str, Any] | None = None,
        config_path: str = CONFIG_FILE,
    ) -> None:
        self._defaults = defaults or {}
        self._config: dict[str, Any] = {}
        self._config_path = config_path

    async def load(self) -> None:
        """
        加载配置文件，缺失或损坏时使用默认值
        Load the config file; fall back to defaults when it is missing or broken.

        Raises:
            ConfigError: 合并后的配置不合法 / the merged config is invalid
        """
        os.makedirs(os.path.dirname(self._config_path) or ".", exist_ok=True)

        self._config = self._read_file()
        merge_defaults(self._config, self._defaults)
        await self.save()

    def _read_file(self) -> dict[str, Any]:
        if not os.path.exists(self._config_path):
            logger.info("未找到配置文件，将创建默认配置")
            return {}
        try:
            with open(self._config_path, encoding="utf-8") as f:
                loaded = json.load(f)
        except (json.JSONDecodeError, OSError):
            logger.warning("加载配置失败，使用默认值: %s", self._config_path)
            return {}
        if not isinstance(loaded, dict):
            logger.warning("配置文件顶层不是对象，使用默认值")
            return {}
        logger.info("配置已从 %s 加载", self._config_path)
        return loaded

    async def save(self) -> None:
        """
        校验后保存配置到文件
        Validate, then save the configuration to its file.
        """
        validate_config(self._config)
        try:
            with open(self._config_path, "w", encoding="utf-8") as f:
                json.dump(self._config, f, ensure_ascii=False, indent=2)
        except OSError:
            logger.exception("保存配置失败")

    def get(self, key: str, default: Any = None) -> Any:
        """
        获取配置值（支持嵌套键，如 "store.db_path"）
        Get a config value by dotted key such as "store.db_path".
        """
        current: Any = self._config
        for k in key.split("."):
            if not isinstance(current, dict):
                return default
            current = current.get(k)
            if current is None:
                return default
        return current

    def set(self, key: str, value: Any) -> None:
        """
        设置配置值（支持嵌套键），调用 save() 时校验
        Set a value by dotted key; validated on the next save().
        """
        *parents, leaf = key.split(".")
        current = self._config
        for k in parents:
            if not isinstance(current.get(k), dict):
                current[k] = {}
            current = current[k]
        current[leaf] = value

    def as_dict(self) -> dict[str, Any]:
        """获取完整配置的副本 / Get a copy of the whole config."""
        return copy.deepcopy(self._config)
