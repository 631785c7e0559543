"""
回复前缀变换器
Reply prefix transformer.
"""

from __future__ import annotations

from RelayBot.message.event import Response


class ReplyPrefixTransformer:
    """给每条回复添加前缀 / Prepends a prefix to every reply."""

    name = "ReplyPrefix"

    def __init__(self, prefix: str) -> None:
        self._prefix = prefix

    async def transform(self, response: Response) -> Response:
        # 动作消息不加前缀
        if not self._prefix or response.action:
            return response
        return response.replace(text=f"{self._prefix}{response.text}")
