"""消息通道适配器 / Messenger adapters."""

from RelayBot.gateway.adapters.console_adapter import ConsoleMessenger

__all__ = ["ConsoleMessenger"]
