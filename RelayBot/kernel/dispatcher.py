"""
消息分发器 - 监听 -> 应答 -> 变换 -> 发送
Dispatcher - listen -> respond -> transform -> send.

每条入站消息启动一个独立的分发任务，多个任务并发运行，互不等待。
Each inbound message starts an independent dispatch task; tasks run
concurrently and never wait on each other.

单个阶段抛出的错误在调用边界被捕获并记录，视为该阶段没有产出：
An error raised by a single stage is caught at the call boundary, logged,
and treated as "this stage produced nothing":
- 监听器: 忽略 / listener: ignored
- 应答器: 视为空响应，继续尝试下一个 / responder: empty, try the next one
- 变换器: 原样传递输入 / transformer: the input passes through unchanged
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from RelayBot.gateway.base import Messenger
from RelayBot.message.event import Message, Response
from RelayBot.pack.base import Listener, Responder, Transformer, stage_name

logger = logging.getLogger(__name__)

# 阶段失败时的占位结果
_FAILED: Any = object()


class Dispatcher:
    """
    分发器 - 编排一条消息在各阶段之间的流转
    Dispatcher - orchestrates one message's journey through the stages.

    阶段集合在构造时传入并固定，分发期间只读。
    Stage collections are passed in at construction and are read-only during
    dispatch.
    """

    def __init__(
        self,
        listeners: Sequence[Listener],
        responders: Sequence[Responder],
        transformers: Sequence[Transformer],
        messenger: Messenger,
        stage_timeout: float | None = None,
    ) -> None:
        self._listeners = tuple(listeners)
        self._responders = tuple(responders)
        self._transformers = tuple(transformers)
        self._messenger = messenger
        self._stage_timeout = stage_timeout
        self._tasks: set[asyncio.Task[Response | None]] = set()
        self._attached = False

    @property
    def pending(self) -> int:
        """进行中的分发任务数 / Number of in-flight dispatch cycles."""
        return len(self._tasks)

    def attach(self) -> None:
        """
        订阅消息通道的入站消息（连接成功后调用一次）
        Subscribe to the messenger's inbound messages; call once after connect.
        """
        if self._attached:
            raise RuntimeError("Dispatcher is already attached")
        self._messenger.set_message_handler(self.submit)
        self._attached = True
        logger.debug(
            "分发器已挂载: %d 个监听器, %d 个应答器, %d 个变换器",
            len(self._listeners),
            len(self._responders),
            len(self._transformers),
        )

    async def submit(self, message: Message) -> asyncio.Task[Response | None]:
        """
        为消息启动一个独立的分发任务并立即返回
        Start an independent dispatch task for a message and return at once.
        """
        task = asyncio.create_task(self.dispatch(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self, timeout: float | None = None) -> None:
        """
        等待进行中的分发任务结束
        Wait for in-flight dispatch cycles to finish.
        """
        if not self._tasks:
            return
        done, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            logger.warning("%d 个分发任务未在时限内完成，已取消", len(pending))
            await asyncio.gather(*pending, return_exceptions=True)

    async def dispatch(self, message: Message) -> Response | None:
        """
        完整执行一次分发周期，返回已发送的响应
        Run one full dispatch cycle; return the response that was sent.
        """
        logger.debug("处理监听器")
        await asyncio.gather(
            *(
                self._invoke("listen", listener, "observe", message, message)
                for listener in self._listeners
            )
        )
        logger.debug("监听器已完成")

        logger.debug("处理应答器")
        response: Response | None = None
        for responder in self._responders:
            result = await self._invoke("respond", responder, "respond", message, message)
            if result is not _FAILED and result is not None:
                response = result
                logger.debug("应答器 %s 产生了响应", stage_name(responder))
                break

        if response is None:
            logger.debug("没有产生响应")
            return None

        logger.debug("处理变换器")
        for transformer in self._transformers:
            result = await self._invoke(
                "transform", transformer, "transform", response, message
            )
            if result is _FAILED:
                continue
            if result is None:
                logger.warning("变换器 %s 返回了 None，已忽略", stage_name(transformer))
                continue
            response = result

        logger.debug("发送响应")
        try:
            await response.send()
        except Exception:
            logger.exception(
                "发送响应失败 (频道=%s, 用户=%s, 文本=%r)",
                message.channel,
                message.user,
                message.text,
            )
            return None
        return response

    async def _invoke(
        self, phase: str, stage: object, method: str, arg: Any, message: Message
    ) -> Any:
        """
        在错误边界内执行一个阶段，失败时返回 _FAILED
        Run one stage inside the error boundary; return _FAILED on failure.
        """
        try:
            call = getattr(stage, method)(arg)
            if self._stage_timeout is not None:
                return await asyncio.wait_for(call, timeout=self._stage_timeout)
            return await call
        except asyncio.TimeoutError:
            logger.warning(
                "阶段 %s (%s) 超时 %.1fs (频道=%s, 用户=%s, 文本=%r)",
                stage_name(stage),
                phase,
                self._stage_timeout,
                message.channel,
                message.user,
                message.text,
            )
        except Exception:
            logger.exception(
                "阶段 %s (%s) 抛出了错误 (频道=%s, 用户=%s, 文本=%r)",
                stage_name(stage),
                phase,
                message.channel,
                message.user,
                message.text,
            )
        return _FAILED
