"""packages/core 测试配置 -- 核心层 fixture"""

from typing import Any

import pytest
import pytest_asyncio
from caseflow.core.store import (
    InMemoryKeyValueStore,
    TaskBundleStore,
    TaskTemplateStore,
)


class FailingKeyValueStore(InMemoryKeyValueStore):
    """可按需让 get / set 失败的持久化协作方"""

    def __init__(self) -> None:
        super().__init__()
        self.fail_get = False
        self.fail_set = False

    async def get(self, key: str) -> Any | None:
        if self.fail_get:
            raise OSError("disk unavailable")
        return await super().get(key)

    async def set(self, key: str, value: Any) -> None:
        if self.fail_set:
            raise OSError("disk full")
        await super().set(key, value)


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def failing_kv() -> FailingKeyValueStore:
    return FailingKeyValueStore()


@pytest_asyncio.fixture
async def template_store(kv: InMemoryKeyValueStore) -> TaskTemplateStore:
    """无种子数据的已初始化模板存储"""
    store = TaskTemplateStore(kv, seeds=[])
    await store.initialize()
    return store


@pytest_asyncio.fixture
async def bundle_store(kv: InMemoryKeyValueStore) -> TaskBundleStore:
    """无种子数据的已初始化任务包存储"""
    store = TaskBundleStore(kv, seeds=[])
    await store.initialize()
    return store


@pytest.fixture
def template_data() -> dict[str, Any]:
    return {
        "title": "File GST Reply",
        "description": "Prepare and file reply to the show cause notice",
        "category": "Notice Reply",
        "priority": "High",
        "estimated_hours": 6,
        "assigned_role": "Senior Associate",
        "stage_scope": ["Demand"],
    }


@pytest.fixture
def bundle_data() -> dict[str, Any]:
    return {
        "name": "Demand Response Kit",
        "description": "Work for a demand notice",
        "stages": ["Demand"],
        "trigger": "case_stage_changed",
        "execution_mode": "Sequential",
        "bundle_code": "DEMAND_KIT",
        "items": [
            {
                "id": "review",
                "title": "Review demand order",
                "assigned_role": "Associate",
                "order_index": 0,
            },
            {
                "id": "reply",
                "title": "Draft reply",
                "assigned_role": "Senior Associate",
                "order_index": 1,
                "dependencies": ["review"],
            },
        ],
    }
