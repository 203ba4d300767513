"""TaskSink -- 物化任务的落盘协作方

编排器创建的 Task 通过 TaskSink 交给任务管理子系统。
"""

import asyncio
from typing import Protocol

from caseflow.core.config import TASKS_KEY
from caseflow.core.models import Task
from caseflow.core.store.protocols import KeyValueStore


class TaskSink(Protocol):
    """任务落盘接口"""

    async def save_task(self, task: Task) -> Task:
        """保存任务并返回已保存的任务"""
        ...


class InMemoryTaskSink:
    """内存任务收集器"""

    def __init__(self) -> None:
        self.tasks: list[Task] = []

    async def save_task(self, task: Task) -> Task:
        self.tasks.append(task)
        return task


class KeyValueTaskSink:
    """将任务追加到 KeyValueStore 的 'tasks' 集合（整集合读-改-写）"""

    def __init__(self, kv: KeyValueStore, key: str = TASKS_KEY) -> None:
        self._kv = kv
        self._key = key
        self._lock = asyncio.Lock()

    async def save_task(self, task: Task) -> Task:
        async with self._lock:
            records = list(await self._kv.get(self._key) or [])
            records.append(task.model_dump(mode="json"))
            await self._kv.set(self._key, records)
        return task

    async def list_tasks(self, case_id: str | None = None) -> list[Task]:
        """查询已保存任务，支持按案件筛选"""
        records = await self._kv.get(self._key) or []
        tasks = [Task.model_validate(r) for r in records]
        if case_id is None:
            return tasks
        return [t for t in tasks if t.case_id == case_id]
