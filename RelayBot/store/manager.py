"""
存储管理器 - 按命名空间创建并缓存数据存储
Store manager - creates and caches data stores per namespace.
"""

from __future__ import annotations

import asyncio
import logging

from RelayBot.store.engine import StorageEngine
from RelayBot.store.kv import DataStore

logger = logging.getLogger(__name__)


class DataStoreManager:
    """
    数据存储管理器 - 插件通过它获取自己的命名空间
    Data store manager - stages obtain their namespaces through it.
    """

    def __init__(self, engine: StorageEngine) -> None:
        self._engine = engine
        self._stores: dict[str, DataStore] = {}
        self._lock = asyncio.Lock()

    @property
    def namespaces(self) -> list[str]:
        """已打开的命名空间 / Namespaces opened so far."""
        return sorted(self._stores)

    async def get_store(self, namespace: str) -> DataStore:
        """
        获取已初始化的命名空间存储
        Get the initialized store for a namespace.

        同一命名空间只初始化一次。
        Each namespace is initialized only once.
        """
        async with self._lock:
            store = self._stores.get(namespace)
            if store is None:
                store = DataStore(self._engine, namespace)
                await store.initialize()
                self._stores[namespace] = store
                logger.info("已打开数据存储: %s", namespace)
            return store
