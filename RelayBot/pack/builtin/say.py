"""
复读应答器 - "say <文本>" 让机器人说出文本
Say responder - "say <text>" makes the bot repeat the text.
"""

from __future__ import annotations

import re

from RelayBot.message.event import Message, Response

_SAY = re.compile(r"^say\s+(?P<text>.+)$", re.IGNORECASE | re.DOTALL)
_ACTION = "/me "


class SayResponder:
    """复读应答器 / Say responder."""

    name = "Say"

    async def respond(self, message: Message) -> Response | None:
        match = _SAY.match(message.text.strip())
        if match is None:
            return None

        text = match.group("text").strip()
        if text.startswith(_ACTION):
            return message.respond(text[len(_ACTION):].strip(), action=True)
        return message.respond(text)
