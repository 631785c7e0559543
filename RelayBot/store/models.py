"""
数据模型 - 键值记录与命名空间表结构
Data models - key/value records and namespace table layout.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Column, Index, Integer, MetaData, Table, Text


@dataclass(frozen=True)
class DataStoreRecord:
    """
    持久化的键值记录
    A persisted key/value record.

    id 由数据库在插入时分配，在命名空间内单调递增且不会复用。
    id is assigned by the database on insert; monotonic within the namespace
    and never reused.
    """

    id: int
    key: str
    value: str

    @classmethod
    def from_row(cls, row: Any) -> DataStoreRecord:
        """从查询结果行构建 / Build from a result row."""
        mapping = row._mapping
        return cls(id=mapping["id"], key=mapping["key"], value=mapping["value"])


def namespace_table(namespace: str, metadata: MetaData) -> Table:
    """
    获取（或定义）命名空间对应的表
    Get (or define) the table backing a namespace.

    每个命名空间一张表: (id, key, value)。
    One table per namespace: (id, key, value).
    """
    if namespace in metadata.tables:
        return metadata.tables[namespace]

    return Table(
        namespace,
        metadata,
        # AUTOINCREMENT 保证删除后 id 不被复用
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("key", Text, nullable=False),
        Column("value", Text, nullable=False),
        Index(f"ix_{namespace}_key", "key"),
        sqlite_autoincrement=True,
    )
