"""
最后出现记录 - 记录每个用户最后一条消息，并回答 "seen <用户>"
Last-seen tracking - records each user's latest message and answers
"seen <user>".
"""

from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import Callable

from RelayBot.message.event import Message, Response
from RelayBot.store.kv import DataStore

logger = logging.getLogger(__name__)

_SEEN = re.compile(r"^seen\s+(?P<user>\S+?)\??$", re.IGNORECASE)

# 先替换 "~"，保证编码可逆且不会产生 LIKE 通配符
_KEY_ESCAPES = (("~", "~7e"), ("%", "~25"), ("_", "~5f"))


def seen_key(user: str) -> str:
    """
    把用户名编码为不含 LIKE 通配符的存储键
    Encode a user name as a store key free of LIKE wildcards.
    """
    key = user.lower()
    for char, escaped in _KEY_ESCAPES:
        key = key.replace(char, escaped)
    return key


def format_ago(seconds: float) -> str:
    """把秒数格式化为粗略的时长 / Format seconds as a rough duration."""
    seconds = max(0, int(seconds))
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''}"
    return f"{seconds} second{'s' if seconds != 1 else ''}"


class SeenListener:
    """
    记录每个用户的最后一条消息
    Records the latest message of every user.

    每个用户只保留一条记录（单值键）。
    Keeps one record per user (a singleton key).
    """

    name = "SeenListener"

    def __init__(self, store: DataStore) -> None:
        self._store = store

    async def observe(self, message: Message) -> None:
        value = json.dumps(
            {
                "channel": message.channel,
                "text": message.text,
                "action": message.action,
                "timestamp": message.timestamp,
            },
            ensure_ascii=False,
        )
        await self._store.set_single(seen_key(message.user), value)


class SeenResponder:
    """回答 "seen <用户>" / Answers "seen <user>"."""

    name = "SeenResponder"

    def __init__(self, store: DataStore, clock: Callable[[], float] = time.time) -> None:
        self._store = store
        self._clock = clock

    async def respond(self, message: Message) -> Response | None:
        match = _SEEN.match(message.text.strip())
        if match is None:
            return None

        who = match.group("user")
        if who.lower() == message.user.lower():
            return message.respond(f"{message.user}: you're right here.")

        record = await self._store.get_single(seen_key(who))
        if record is None:
            return message.respond(f"I haven't seen {who}.")

        try:
            seen = json.loads(record.value)
        except json.JSONDecodeError:
            logger.warning("无法解析 %s 的记录: %r", who, record.value)
            return message.respond(f"I haven't seen {who}.")

        ago = format_ago(self._clock() - float(seen.get("timestamp", 0)))
        text = seen.get("text", "")
        if seen.get("action"):
            said = f"* {who} {text}"
        else:
            said = text
        return message.respond(
            f"{who} was last seen in {seen.get('channel', '?')} {ago} ago, saying: {said}"
        )
