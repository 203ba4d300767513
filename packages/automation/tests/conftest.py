"""packages/automation 测试配置 -- 编排层 fixture"""

from typing import Any

import pytest
import pytest_asyncio
from caseflow.automation import (
    AutomationConfig,
    AutomationEventEmitter,
    EventHub,
    InMemoryTaskSink,
    TaskCreationOrchestrator,
)
from caseflow.core.models import Task
from caseflow.core.store import InMemoryKeyValueStore, TaskBundleStore, TaskTemplateStore


class FlakyTaskSink(InMemoryTaskSink):
    """指定标题的任务落盘失败"""

    def __init__(self, failing_titles: set[str]) -> None:
        super().__init__()
        self.failing_titles = failing_titles

    async def save_task(self, task: Task) -> Task:
        if task.title in self.failing_titles:
            raise OSError(f"task store rejected {task.title}")
        return await super().save_task(task)


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest_asyncio.fixture
async def template_store(kv: InMemoryKeyValueStore) -> TaskTemplateStore:
    store = TaskTemplateStore(kv, seeds=[])
    await store.initialize()
    return store


@pytest_asyncio.fixture
async def bundle_store(kv: InMemoryKeyValueStore) -> TaskBundleStore:
    store = TaskBundleStore(kv, seeds=[])
    await store.initialize()
    return store


@pytest.fixture
def sink() -> InMemoryTaskSink:
    return InMemoryTaskSink()


@pytest.fixture
def hub() -> EventHub:
    return EventHub()


@pytest.fixture
def make_orchestrator(template_store, bundle_store, sink, hub):
    """编排器工厂，可替换落盘协作方与配置"""

    def _make(
        task_sink=None,
        config: AutomationConfig | None = None,
        **kwargs: Any,
    ) -> TaskCreationOrchestrator:
        return TaskCreationOrchestrator(
            template_store,
            bundle_store,
            task_sink or sink,
            emitter=AutomationEventEmitter(hub),
            config=config,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_flaky_sink():
    return FlakyTaskSink


def item(item_id: str, **overrides: Any) -> dict[str, Any]:
    data = {
        "id": item_id,
        "title": item_id.replace("-", " ").title(),
        "assigned_role": "Associate",
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_bundle(bundle_store):
    """按给定条目创建任务包"""

    async def _make(items: list[dict[str, Any]], **overrides: Any):
        data = {
            "name": "Demand Response Kit",
            "stages": ["Demand"],
            "trigger": "case_stage_changed",
            "execution_mode": "Sequential",
            "items": items,
        }
        data.update(overrides)
        return await bundle_store.create(data)

    return _make


@pytest.fixture
def bundle_item():
    return item
