"""
存储引擎 - 管理数据库连接与事务
Storage engine - manages the database connection and transactions.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import MetaData, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from RelayBot.exceptions import StorageError

logger = logging.getLogger(__name__)


class StorageEngine:
    """
    存储引擎 - 封装数据库操作
    Storage engine - wraps database operations.

    SQLite 同一时间只能有一个写入者，因此所有操作都通过一把锁串行执行。
    SQLite allows a single writer at a time, so every operation is serialized
    through one lock.
    """

    def __init__(self, db_path: str = "data/relaybot.db", case_sensitive_like: bool = False) -> None:
        self._db_path = db_path
        self._case_sensitive_like = case_sensitive_like
        # 确保目录存在
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)

        self._engine = create_async_engine(
            f"sqlite+aiosqlite:///{db_path}",
            echo=False,
        )
        self._session_factory = async_sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )
        self._lock = asyncio.Lock()
        # 每个命名空间一张表，共用一个 MetaData
        self.metadata = MetaData()

        event.listen(self._engine.sync_engine, "connect", self._on_connect)

    def _on_connect(self, dbapi_connection: Any, _connection_record: Any) -> None:
        # LIKE 的大小写行为显式固定，不依赖编译默认值
        pragma = "ON" if self._case_sensitive_like else "OFF"
        cursor = dbapi_connection.cursor()
        cursor.execute(f"PRAGMA case_sensitive_like = {pragma}")
        cursor.close()

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def case_sensitive_like(self) -> bool:
        return self._case_sensitive_like

    async def create_tables(self, *tables: Any) -> None:
        """
        创建表（已存在则跳过）
        Create tables, skipping ones that already exist.
        """
        async with self._lock:
            try:
                async with self._engine.begin() as conn:
                    await conn.run_sync(self.metadata.create_all, tables=list(tables))
            except SQLAlchemyError as exc:
                raise StorageError(f"创建表失败: {exc}") from exc

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        获取一个独占的事务会话
        Acquire an exclusive transactional session.

        成功时提交，出错时回滚；数据库错误统一转换为 StorageError。
        Commits on success, rolls back on error; database errors are
        converted to StorageError.
        """
        async with self._lock:
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        yield session
            except SQLAlchemyError as exc:
                logger.debug("存储事务失败: %s", exc)
                raise StorageError(str(exc)) from exc

    async def dispose(self) -> None:
        """关闭引擎 / Dispose engine."""
        await self._engine.dispose()
        logger.info("存储引擎已关闭: %s", self._db_path)
