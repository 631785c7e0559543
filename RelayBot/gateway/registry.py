"""
消息通道注册表 - 根据配置实例化适配器
Messenger registry - instantiates adapters from configuration.

所有适配器显式注册。
All adapters are registered explicitly.
"""

from __future__ import annotations

import logging
from typing import Any

from RelayBot.exceptions import ConfigError
from RelayBot.gateway.adapters.console_adapter import ConsoleMessenger
from RelayBot.gateway.base import Messenger

logger = logging.getLogger(__name__)

# adapter_type -> Messenger 类
ADAPTER_TYPES: dict[str, type[Messenger]] = {
    "console": ConsoleMessenger,
}


def create_messenger(config: dict[str, Any]) -> Messenger:
    """
    按配置创建消息通道
    Create a messenger from its configuration section.
    """
    adapter_type = config.get("type", "")
    messenger_cls = ADAPTER_TYPES.get(adapter_type)
    if messenger_cls is None:
        raise ConfigError(f"未知的消息通道类型: {adapter_type!r}")

    messenger = messenger_cls(config)
    logger.debug("已创建消息通道: %s (%s)", messenger.metadata.instance_name, adapter_type)
    return messenger
