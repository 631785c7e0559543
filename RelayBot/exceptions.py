"""
异常定义 - RelayBot 的错误分类
Exception definitions - RelayBot error taxonomy.
"""

from __future__ import annotations


class RelayBotError(Exception):
    """所有 RelayBot 错误的基类 / Base class for all RelayBot errors."""


class StorageError(RelayBotError):
    """
    数据存储操作失败
    A data store operation failed.

    存储层不吞噬错误，交由调用方决定是否致命。
    The store never swallows it; the caller decides whether it is fatal.
    """


class MessengerError(RelayBotError):
    """消息通道故障 / A messenger (transport) fault."""


class ConfigError(RelayBotError):
    """配置无效 / Invalid configuration."""
