"""
阶段能力接口 - 监听器、应答器、变换器
Stage capabilities - listeners, responders and transformers.

插件只需实现对应的方法，不需要继承任何基类。
A plugin only implements the matching method; no base class is required.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from RelayBot.message.event import Message, Response


@runtime_checkable
class Listener(Protocol):
    """
    监听器 - 观察每条消息，只产生副作用
    Listener - observes every message for side effects only.

    同一条消息的所有监听器并发执行。
    All listeners for one message run concurrently.
    """

    async def observe(self, message: Message) -> None: ...


@runtime_checkable
class Responder(Protocol):
    """
    应答器 - 按注册顺序尝试，第一个非空响应胜出
    Responder - tried in registration order; the first non-empty response wins.
    """

    async def respond(self, message: Message) -> Response | None: ...


@runtime_checkable
class Transformer(Protocol):
    """
    变换器 - 依次改写响应
    Transformer - rewrites the response, one after another.
    """

    async def transform(self, response: Response) -> Response: ...


def stage_name(stage: object) -> str:
    """阶段名称，用于日志 / Stage name, for logging."""
    name = getattr(stage, "name", None)
    if isinstance(name, str) and name:
        return name
    return type(stage).__name__
