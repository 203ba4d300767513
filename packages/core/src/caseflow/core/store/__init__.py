"""Caseflow Core Store -- 定义存储与持久化协作方实现

提供工厂函数创建共享同一持久化协作方的 Store 实例组。
"""

from pathlib import Path

import aiosqlite

from .bundle_store import TaskBundleStore
from .memory_kv import InMemoryKeyValueStore
from .protocols import KeyValueStore
from .sqlite_init import init_db
from .sqlite_kv import SqliteKeyValueStore
from .template_store import TaskTemplateStore


class StoreGroup:
    """Store 实例组 -- 共享同一个持久化协作方"""

    def __init__(
        self,
        kv: KeyValueStore,
        conn: aiosqlite.Connection | None = None,
    ) -> None:
        self.kv = kv
        self.conn = conn
        self.template_store = TaskTemplateStore(kv)
        self.bundle_store = TaskBundleStore(kv)

    async def initialize(self) -> None:
        """初始化全部 store（首次写入默认种子数据）"""
        await self.template_store.initialize()
        await self.bundle_store.initialize()

    async def close(self) -> None:
        if self.conn is not None:
            await self.conn.close()


async def create_store_group(db_path: str) -> StoreGroup:
    """创建基于 SQLite 的 Store 实例组并完成初始化

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        已初始化的 StoreGroup 实例
    """
    # 确保数据库目录存在
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    await init_db(conn)

    group = StoreGroup(SqliteKeyValueStore(conn), conn=conn)
    await group.initialize()
    return group


def create_memory_store_group() -> StoreGroup:
    """创建基于内存的 Store 实例组（需调用方 await initialize()）"""
    return StoreGroup(InMemoryKeyValueStore())


__all__ = [
    "StoreGroup",
    "create_store_group",
    "create_memory_store_group",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "SqliteKeyValueStore",
    "TaskTemplateStore",
    "TaskBundleStore",
    "init_db",
]
