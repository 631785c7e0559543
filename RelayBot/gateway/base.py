"""
消息通道基类 - 所有聊天网络适配器的抽象基类
Messenger base - abstract base class for all chat network adapters.

每个具体平台需要实现这个接口。
Each concrete chat network implements this interface.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from RelayBot.message.event import Message

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Message], Awaitable[Any]]
FatalHandler = Callable[[BaseException], Awaitable[None]]


class MessengerStatus(Enum):
    """消息通道状态枚举 / Messenger status enum."""

    INITIALIZING = auto()
    RUNNING = auto()
    STOPPED = auto()
    ERROR = auto()


@dataclass
class MessengerMetadata:
    """
    消息通道元数据
    Messenger metadata.
    """

    # 适配器类型名（如 console）
    adapter_type: str = ""
    # 实例名（用户自定义）
    instance_name: str = ""
    # 描述
    description: str = ""
    # 附加信息
    extra: dict[str, Any] = field(default_factory=dict)


class Messenger(ABC):
    """
    消息通道抽象基类 - 所有平台适配器的父类
    Messenger abstract base - parent of all chat network adapters.

    设计要求：
    1. 适配器负责接收消息并转换为 Message
    2. 适配器通过 submit_event 将消息提交给系统
    3. 适配器负责发送消息到平台
    4. 连接失败通过 connect() 返回 False 报告，而不是抛出异常
    """

    def __init__(self, config: dict[str, Any]) -> None:
        self._config = config
        self._status = MessengerStatus.INITIALIZING
        self._on_message: MessageHandler | None = None
        self._on_fatal: FatalHandler | None = None
        self._metadata = MessengerMetadata()

    @property
    def status(self) -> MessengerStatus:
        """获取当前状态 / Get current status."""
        return self._status

    @property
    def metadata(self) -> MessengerMetadata:
        """获取元数据 / Get metadata."""
        return self._metadata

    def set_message_handler(self, handler: MessageHandler) -> None:
        """
        设置消息接收回调
        Set the message receive callback.
        """
        self._on_message = handler

    def set_fatal_handler(self, handler: FatalHandler) -> None:
        """
        设置致命错误回调（由启动层决定是否退出）
        Set the fatal error callback; the bootstrap layer decides what to do.
        """
        self._on_fatal = handler

    async def submit_event(self, message: Message) -> None:
        """
        提交消息到系统
        Submit a message to the system.
        """
        if self._on_message is not None:
            await self._on_message(message)
        else:
            logger.warning("消息通道 %s 未设置消息处理器", self._metadata.instance_name)

    async def report_fatal(self, exc: BaseException) -> None:
        """
        报告不可恢复的传输故障
        Report an unrecoverable transport fault.
        """
        self._status = MessengerStatus.ERROR
        logger.error("消息通道 %s 发生致命错误: %s", self._metadata.instance_name, exc)
        if self._on_fatal is not None:
            await self._on_fatal(exc)

    @abstractmethod
    async def connect(self) -> bool:
        """
        建立连接并开始接收消息
        Connect and start receiving messages.

        失败时返回 False。
        Returns False on failure.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """
        断开连接
        Disconnect.
        """
        ...

    @abstractmethod
    async def send_message(self, channel: str, text: str, action: bool = False) -> None:
        """
        发送消息到指定频道
        Send a message to a channel.
        """
        ...

    @abstractmethod
    async def get_message_history(
        self, channel: str, user: str | None = None
    ) -> list[Message]:
        """
        获取频道的历史消息（从旧到新）
        Get a channel's message history, oldest first.
        """
        ...
