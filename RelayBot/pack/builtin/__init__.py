"""
内置阶段 - 框架预置的监听器、应答器和变换器
Built-in stages - preset listeners, responders and transformers.
"""

from RelayBot.pack.builtin.reply_prefix import ReplyPrefixTransformer
from RelayBot.pack.builtin.say import SayResponder
from RelayBot.pack.builtin.seen import SeenListener, SeenResponder

__all__ = [
    "ReplyPrefixTransformer",
    "SayResponder",
    "SeenListener",
    "SeenResponder",
]
