"""KeyValueStore SQLite 实现

每个 key 一行，值序列化为 JSON 文本；set 为 upsert 并在同一事务内提交。
"""

import json
from datetime import UTC, datetime
from typing import Any

import aiosqlite


class SqliteKeyValueStore:
    """KeyValueStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def get(self, key: str) -> Any | None:
        """读取 key 对应的值"""
        cursor = await self._conn.execute(
            "SELECT value FROM kv WHERE key = ?",
            (key,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return json.loads(row[0])

    async def set(self, key: str, value: Any) -> None:
        """整体写入 key 对应的值（失败时回滚）"""
        try:
            await self._conn.execute(
                """
                INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (
                    key,
                    json.dumps(value, ensure_ascii=False),
                    datetime.now(UTC).isoformat(),
                ),
            )
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise

