"""全局 pytest 配置 -- async 测试支持 + 临时 SQLite 数据库 fixture"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio
from caseflow.core.models import TriggerContext


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接"""
    from caseflow.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_db_path))
    await init_db(conn)
    yield conn
    await conn.close()


@pytest.fixture
def fixed_now() -> datetime:
    """固定的触发时间，便于断言截止日期"""
    return datetime(2025, 3, 10, 9, 30, tzinfo=UTC)


@pytest.fixture
def make_context(fixed_now: datetime):
    """TriggerContext 工厂"""

    def _make(**overrides) -> TriggerContext:
        data = {
            "case_id": "case-001",
            "client_id": "client-001",
            "case_number": "GST/2025/001",
            "stage": "Demand",
            "triggered_at": fixed_now,
        }
        data.update(overrides)
        return TriggerContext(**data)

    return _make
