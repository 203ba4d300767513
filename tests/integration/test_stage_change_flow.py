"""端到端集成测试 -- SQLite 持久化 + 默认定义 + 阶段变更自动化

测试内容：
1. 阶段变更 → 默认任务包创建任务并落盘到 tasks 集合
2. 关闭连接后重新打开，usage 与任务完整
3. 并发编排调用下 usage 不丢失
"""

import asyncio
from pathlib import Path

import pytest_asyncio
from caseflow.automation import (
    AutomationEventEmitter,
    EventHub,
    KeyValueTaskSink,
    StageAutomationService,
    TaskCreationOrchestrator,
)
from caseflow.core.store import create_store_group


@pytest_asyncio.fixture
async def store_group(tmp_path: Path):
    group = await create_store_group(str(tmp_path / "data" / "caseflow.db"))
    yield group
    await group.close()


def _wire(group, hub: EventHub | None = None):
    sink = KeyValueTaskSink(group.kv)
    orchestrator = TaskCreationOrchestrator(
        group.template_store,
        group.bundle_store,
        sink,
        emitter=AutomationEventEmitter(hub or EventHub()),
    )
    service = StageAutomationService(group.template_store, group.bundle_store, orchestrator)
    return sink, orchestrator, service


class TestStageChangeFlow:
    """阶段变更端到端"""

    async def test_demand_stage_creates_notice_reply_tasks(self, store_group, make_context):
        hub = EventHub()
        events = await hub.subscribe("task_created")
        sink, _, service = _wire(store_group, hub)

        report = await service.handle_stage_change(make_context(stage="Demand"))

        (result,) = report.bundle_results
        assert result.bundle_name == "Notice Reply Kit"
        review, draft, partner = result.created_tasks
        assert draft.depends_on == [review.task_id]
        assert partner.depends_on == [draft.task_id]
        assert partner.assigned_to_id == "partner"

        # 默认模板都只建议，不自动创建
        assert report.template_tasks == []
        assert len(report.suggested_templates) == 4

        stored = await sink.list_tasks(case_id="case-001")
        assert [t.task_id for t in stored] == [
            review.task_id,
            draft.task_id,
            partner.task_id,
        ]
        assert events.qsize() == 3

    async def test_hearing_bundle_runs_in_parallel(self, store_group, make_context):
        sink, _, service = _wire(store_group)

        report = await service.handle_stage_change(
            make_context(stage="Tribunal", trigger_event="hearing_scheduled")
        )

        (result,) = report.bundle_results
        assert result.bundle_name == "Hearing Preparation Kit"
        by_item = {t.bundle_item_id: t for t in result.created_tasks}
        assert set(by_item) == {"hearing-brief", "hearing-paperbook"}
        assert by_item["hearing-paperbook"].checklist == ["Index", "Annexures", "Authorities"]
        assert len(await sink.list_tasks()) == 2

    async def test_state_survives_reopen(self, tmp_path: Path, make_context):
        db_path = str(tmp_path / "reopen.db")

        group = await create_store_group(db_path)
        _, _, service = _wire(group)
        report = await service.handle_stage_change(make_context(stage="Scrutiny"))
        bundle_id = report.bundle_results[0].bundle_id
        await group.close()

        reopened = await create_store_group(db_path)
        try:
            bundle = await reopened.bundle_store.get_by_id(bundle_id)
            assert bundle.usage_count == 1
            assert len(await reopened.template_store.get_all()) == 5
            assert len(await KeyValueTaskSink(reopened.kv).list_tasks()) == 3
        finally:
            await reopened.close()

    async def test_concurrent_invocations_keep_every_increment(
        self, store_group, make_context
    ):
        sink, orchestrator, _ = _wire(store_group)
        (bundle,) = await store_group.bundle_store.get_by_trigger(
            "case_stage_changed", stages=["Demand"]
        )

        results = await asyncio.gather(
            *(
                orchestrator.create_tasks_from_bundle(
                    bundle.id, make_context(case_id=f"case-{n}")
                )
                for n in range(5)
            )
        )

        assert all(r.total_tasks_created == 3 for r in results)
        assert (await store_group.bundle_store.get_by_id(bundle.id)).usage_count == 5
        assert len(await sink.list_tasks()) == 15
