"""
控制台消息通道适配器
Console messenger adapter.

从标准输入读取消息，向标准输出写回复，用于本地调试。
Reads messages from stdin and writes replies to stdout; for local use.
"""

from __future__ import annotations

import asyncio
import getpass
import logging
import sys
from collections import deque
from typing import Any, TextIO

from RelayBot.exceptions import MessengerError
from RelayBot.gateway.base import Messenger, MessengerMetadata, MessengerStatus
from RelayBot.message.event import Message

logger = logging.getLogger(__name__)

ACTION_PREFIX = "/me "


def _default_user() -> str:
    try:
        return getpass.getuser()
    except (OSError, KeyError):
        return "user"


class ConsoleMessenger(Messenger):
    """控制台消息通道 / Console messenger."""

    def __init__(
        self,
        config: dict[str, Any],
        reader: asyncio.StreamReader | None = None,
        output: TextIO | None = None,
    ) -> None:
        super().__init__(config)
        self._bot_name: str = config.get("name") or "relaybot"
        self._channel: str = config.get("channel") or "console"
        self._user: str = config.get("user") or _default_user()
        self._reader = reader
        self._output = output or sys.stdout
        self._history: dict[str, deque[Message]] = {}
        self._history_size = int(config.get("history_size", 200))
        self._read_task: asyncio.Task[None] | None = None
        self._metadata = MessengerMetadata(
            adapter_type="console",
            instance_name=self._bot_name,
            description="Console (stdin/stdout) messenger",
        )

    async def connect(self) -> bool:
        if self._status == MessengerStatus.RUNNING:
            return True

        try:
            reader = self._reader if self._reader is not None else await self._open_stdin()
        except (OSError, ValueError):
            logger.exception("无法打开标准输入")
            self._status = MessengerStatus.ERROR
            return False

        self._reader = reader
        self._read_task = asyncio.create_task(self._read_loop(reader), name="console-reader")
        self._status = MessengerStatus.RUNNING
        logger.info("控制台消息通道已连接 (频道=%s, 用户=%s)", self._channel, self._user)
        return True

    async def disconnect(self) -> None:
        if self._read_task is not None and self._read_task is not asyncio.current_task():
            self._read_task.cancel()
            try:
                await self._read_task
            except asyncio.CancelledError:
                pass
        self._read_task = None
        self._status = MessengerStatus.STOPPED
        logger.info("控制台消息通道已断开")

    async def send_message(self, channel: str, text: str, action: bool = False) -> None:
        if action:
            line = f"* {self._bot_name} {text}"
        else:
            line = f"<{self._bot_name}> {text}"
        self._output.write(line + "\n")
        self._output.flush()
        self._remember(
            Message(channel=channel, user=self._bot_name, text=text, action=action, messenger=self)
        )

    async def get_message_history(
        self, channel: str, user: str | None = None
    ) -> list[Message]:
        messages = self._history.get(channel, ())
        if user is None:
            return list(messages)
        return [m for m in messages if m.user == user]

    def parse(self, line: str) -> Message | None:
        """
        把一行输入解析为消息，空行返回 None
        Parse one input line into a message; blank lines give None.
        """
        text = line.rstrip("\r\n")
        if not text.strip():
            return None
        action = text.startswith(ACTION_PREFIX)
        if action:
            text = text[len(ACTION_PREFIX):]
        return Message(
            channel=self._channel,
            user=self._user,
            text=text,
            action=action,
            messenger=self,
        )

    async def _open_stdin(self) -> asyncio.StreamReader:
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)
        await loop.connect_read_pipe(lambda: protocol, sys.stdin)
        return reader

    async def _read_loop(self, reader: asyncio.StreamReader) -> None:
        while True:
            raw = await reader.readline()
            if not raw:
                await self.report_fatal(MessengerError("console input closed"))
                return

            message = self.parse(raw.decode("utf-8", errors="replace"))
            if message is None:
                continue

            self._remember(message)
            await self.submit_event(message)

    def _remember(self, message: Message) -> None:
        history = self._history.get(message.channel)
        if history is None:
            history = deque(maxlen=self._history_size)
            self._history[message.channel] = history
        history.append(message)
