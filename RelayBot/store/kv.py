"""
KV 存储 - 绑定到单个命名空间的键值对存储
Key-Value store - key/value storage bound to a single namespace.

键和值参数都接受 LIKE 模式: % 匹配任意长度字符，_ 匹配单个字符。
Key and value arguments accept LIKE patterns: % matches any run of
characters, _ matches exactly one.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, insert, select, update

from RelayBot.store.engine import StorageEngine
from RelayBot.store.models import DataStoreRecord, namespace_table

logger = logging.getLogger(__name__)


def _require(name: str, value: str | None) -> str:
    if value is None:
        raise ValueError(f"{name} 不能为 None / {name} must not be None")
    return value


class DataStore:
    """
    KV 存储 - 基于数据库表的键值对存储
    KV store - table-backed key/value store.

    一个实例只对应一个命名空间（一张表），不支持跨命名空间查询。
    One instance maps to exactly one namespace (one table); no cross-namespace
    queries.
    """

    def __init__(self, engine: StorageEngine, namespace: str) -> None:
        if not isinstance(namespace, str) or not namespace:
            raise ValueError("命名空间名称不能为空 / namespace must be a non-empty string")
        self._engine = engine
        self._namespace = namespace
        self._table = namespace_table(namespace, engine.metadata)

    @property
    def namespace(self) -> str:
        return self._namespace

    async def initialize(self) -> None:
        """
        创建命名空间（已存在则无操作）
        Create the namespace; a no-op when it already exists.
        """
        await self._engine.create_tables(self._table)
        logger.debug("命名空间已就绪: %s", self._namespace)

    async def add(self, key: str, value: str) -> bool:
        """追加一条记录（从不覆盖） / Append a record; never overwrites."""
        key = _require("key", key)
        value = _require("value", value)
        async with self._engine.transaction() as session:
            result = await session.execute(
                insert(self._table).values(key=key, value=value)
            )
            return result.rowcount > 0

    async def get(self, record_id: int) -> DataStoreRecord | None:
        """按 id 查询 / Look up by id."""
        t = self._table
        async with self._engine.transaction() as session:
            result = await session.execute(select(t).where(t.c.id == record_id))
            row = result.first()
        return DataStoreRecord.from_row(row) if row is not None else None

    async def get_all(self, key: str) -> list[DataStoreRecord]:
        """获取所有键匹配的记录 / Get all records whose key matches."""
        t = self._table
        stmt = select(t).where(t.c.key.like(_require("key", key))).order_by(t.c.id)
        async with self._engine.transaction() as session:
            result = await session.execute(stmt)
            rows = result.all()
        return [DataStoreRecord.from_row(row) for row in rows]

    async def get_all_keys(self) -> set[str]:
        """获取所有不同的键 / Get every distinct key."""
        async with self._engine.transaction() as session:
            result = await session.execute(select(self._table.c.key).distinct())
            return set(result.scalars().all())

    async def get_random(self, key: str | None = None) -> DataStoreRecord | None:
        """
        均匀随机取一条记录
        Pick one record uniformly at random.

        不传 key 时在整个命名空间中取样。
        Without a key, samples across the whole namespace.
        """
        t = self._table
        stmt = select(t)
        if key is not None:
            stmt = stmt.where(t.c.key.like(key))
        stmt = stmt.order_by(func.random()).limit(1)

        async with self._engine.transaction() as session:
            result = await session.execute(stmt)
            row = result.first()
        return DataStoreRecord.from_row(row) if row is not None else None

    async def remove(self, key: str, value: str) -> bool:
        """删除键和值都匹配的记录 / Remove records matching both key and value."""
        t = self._table
        stmt = delete(t).where(
            t.c.key.like(_require("key", key)),
            t.c.value.like(_require("value", value)),
        )
        async with self._engine.transaction() as session:
            result = await session.execute(stmt)
            return result.rowcount > 0

    async def remove_by_id(self, record_id: int) -> bool:
        """按 id 删除一条记录 / Remove exactly one record by id."""
        t = self._table
        async with self._engine.transaction() as session:
            result = await session.execute(delete(t).where(t.c.id == record_id))
            return result.rowcount > 0

    async def remove_all(self, key: str) -> int:
        """删除所有键匹配的记录，返回删除数量 / Remove all matches; return the count."""
        t = self._table
        async with self._engine.transaction() as session:
            result = await session.execute(
                delete(t).where(t.c.key.like(_require("key", key)))
            )
            return result.rowcount

    async def get_single(self, key: str) -> DataStoreRecord | None:
        """
        仅当恰好一条记录匹配时返回它
        Return the record only when exactly one matches.

        零条或多条匹配都返回 None；需要区分时请用 get_count。
        Zero or several matches both give None; use get_count to tell them
        apart.
        """
        t = self._table
        stmt = select(t).where(t.c.key.like(_require("key", key))).order_by(t.c.id).limit(2)
        async with self._engine.transaction() as session:
            result = await session.execute(stmt)
            rows = result.all()
        if len(rows) != 1:
            return None
        return DataStoreRecord.from_row(rows[0])

    async def set_single(self, key: str, value: str) -> bool:
        """
        保证键最多只有一个值
        Keep the key at most one value.

        - 恰好一条匹配: 原地更新 / exactly one match: update in place
        - 没有匹配: 新增 / no match: add
        - 多条匹配: 全部删除后新增 / several: remove them all, then add

        整个检查-修改过程在同一个加锁事务中完成，并发调用不会丢失更新或产生重复。
        The whole check-and-mutate sequence runs in one locked transaction, so
        concurrent calls neither lose updates nor create duplicates.
        """
        key = _require("key", key)
        value = _require("value", value)
        t = self._table

        async with self._engine.transaction() as session:
            result = await session.execute(
                select(t.c.id).where(t.c.key.like(key)).order_by(t.c.id).limit(2)
            )
            ids = result.scalars().all()

            if len(ids) == 1:
                updated = await session.execute(
                    update(t).where(t.c.id == ids[0]).values(value=value)
                )
                return updated.rowcount == 1

            if len(ids) > 1:
                removed = await session.execute(delete(t).where(t.c.key.like(key)))
                logger.warning(
                    "命名空间 %s 的键 %s 存在 %d 个值，已清理",
                    self._namespace,
                    key,
                    removed.rowcount,
                )

            inserted = await session.execute(insert(t).values(key=key, value=value))
            return inserted.rowcount > 0

    async def get_count(self, key: str) -> int:
        """统计键匹配的记录数 / Count records whose key matches."""
        t = self._table
        stmt = select(func.count()).select_from(t).where(t.c.key.like(_require("key", key)))
        async with self._engine.transaction() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def contains(self, key: str, value: str) -> bool:
        """是否存在键和值都匹配的记录 / Whether a record matches both patterns."""
        t = self._table
        stmt = (
            select(t.c.id)
            .where(
                t.c.key.like(_require("key", key)),
                t.c.value.like(_require("value", value)),
            )
            .limit(1)
        )
        async with self._engine.transaction() as session:
            result = await session.execute(stmt)
            return result.first() is not None
