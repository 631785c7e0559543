"""
消息事件 - 入站消息与出站响应
Message event - inbound messages and outbound responses.

消息是不可变的输入描述；响应由应答器创建，再由变换器逐个改写。
Messages are immutable input descriptions; responses are created by a
responder and then rewritten by each transformer in turn.
"""

from __future__ import annotations

import dataclasses
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from RelayBot.exceptions import MessengerError

if TYPE_CHECKING:
    from RelayBot.gateway.base import Messenger


@dataclass(frozen=True)
class Message:
    """
    消息 - 表示一条收到的消息
    Message - represents a received message.
    """

    # 来源频道
    channel: str
    # 发送者
    user: str
    # 原始文本
    text: str
    # 是否为动作消息（如 /me）
    action: bool = False
    # 时间戳（秒）
    timestamp: float = field(default_factory=time.time)
    # 来源消息通道（由适配器注入）
    messenger: Messenger | None = field(default=None, repr=False, compare=False)

    def respond(self, text: str, action: bool = False) -> Response:
        """
        构建一条发回来源频道的响应
        Build a response addressed back to the originating channel.
        """
        return Response(
            channel=self.channel,
            text=text,
            action=action,
            messenger=self.messenger,
        )


@dataclass
class Response:
    """
    响应 - 将要发送的回复
    Response - a reply waiting to be sent.
    """

    channel: str
    text: str
    action: bool = False
    messenger: Messenger | None = field(default=None, repr=False, compare=False)

    def replace(self, **changes: Any) -> Response:
        """复制并修改字段，保留发送绑定 / Copy with changes, keeping the binding."""
        return dataclasses.replace(self, **changes)

    async def send(self) -> None:
        """
        通过来源消息通道发送
        Send through the originating messenger.
        """
        if self.messenger is None:
            raise MessengerError(f"响应未绑定消息通道: {self.channel}")
        await self.messenger.send_message(self.channel, self.text, self.action)
