"""
消息通道模块 - 连接聊天网络
Gateway module - connects to chat networks.
"""

from RelayBot.gateway.base import Messenger, MessengerMetadata, MessengerStatus
from RelayBot.gateway.registry import create_messenger

__all__ = [
    "Messenger",
    "MessengerMetadata",
    "MessengerStatus",
    "create_messenger",
]
