"""
消息模型模块 - 定义入站消息与出站响应
Message model module - inbound messages and outbound responses.
"""

from RelayBot.message.event import Message, Response

__all__ = ["Message", "Response"]
