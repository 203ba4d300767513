"""整集合读-改-写 Store 基类

每个 store 实例持有一把 asyncio.Lock，串行化同一集合的读-改-写，
避免并发编排调用下的更新丢失。持久化失败包装为 PersistenceError，
内存中不保留副本，因此失败后状态停留在最后一次成功写入。
"""

import asyncio
from datetime import UTC, datetime
from typing import Any

import structlog

from ..exceptions import PersistenceError, StoreNotReadyError
from .protocols import KeyValueStore

log = structlog.get_logger()

# update 时忽略的字段
IMMUTABLE_FIELDS: frozenset[str] = frozenset(
    {"id", "version", "usage_count", "created_at", "updated_at"}
)


class CollectionStore:
    """以单个 key 保存完整集合的 store 基类"""

    key: str = ""
    store_name: str = "CollectionStore"

    def __init__(self, kv: KeyValueStore, seeds: list[dict[str, Any]]) -> None:
        self._kv = kv
        self._seeds = seeds
        self._lock = asyncio.Lock()
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    async def initialize(self) -> None:
        """启动闸门：集合从未写入过时写入默认种子数据。幂等。"""
        async with self._lock:
            if self._ready:
                return
            raw = await self._read()
            if raw is None:
                now = self._now()
                records = [self._seed_record(seed, now) for seed in self._seeds]
                await self._write(records)
                log.info(
                    "store_seeded",
                    store=self.store_name,
                    count=len(records),
                )
            self._ready = True

    def _seed_record(self, seed: dict[str, Any], now: datetime) -> dict[str, Any]:
        raise NotImplementedError

    def _ensure_ready(self) -> None:
        if not self._ready:
            raise StoreNotReadyError(self.store_name)

    async def _read(self) -> list[dict[str, Any]] | None:
        try:
            return await self._kv.get(self.key)
        except Exception as e:
            log.error(
                "store_read_failed",
                store=self.store_name,
                key=self.key,
                error_type=type(e).__name__,
            )
            raise PersistenceError("get", self.key, e) from e

    async def _write(self, records: list[dict[str, Any]]) -> None:
        try:
            await self._kv.set(self.key, records)
        except Exception as e:
            log.error(
                "store_write_failed",
                store=self.store_name,
                key=self.key,
                error_type=type(e).__name__,
            )
            raise PersistenceError("set", self.key, e) from e

    async def _load(self) -> list[dict[str, Any]]:
        """读取完整集合（要求已初始化）"""
        self._ensure_ready()
        return list(await self._read() or [])

    @staticmethod
    def _index_of(records: list[dict[str, Any]], record_id: str) -> int | None:
        for index, record in enumerate(records):
            if record.get("id") == record_id:
                return index
        return None

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)
