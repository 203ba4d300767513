"""TaskTemplateStore 测试

测试内容：
1. 初始化闸门与默认种子数据
2. CRUD、版本号、克隆
3. 阶段查询、usage 计数（含并发）
4. 统计、导入导出、持久化失败
"""

import asyncio
import json

import pytest
from caseflow.core.config import ANY_STAGE, GST_STAGES
from caseflow.core.exceptions import (
    NotFoundError,
    PersistenceError,
    StoreNotReadyError,
    ValidationError,
)
from caseflow.core.store import InMemoryKeyValueStore, TaskTemplateStore


class TestInitialize:
    """初始化闸门"""

    async def test_seeds_defaults_on_first_run(self, kv: InMemoryKeyValueStore):
        store = TaskTemplateStore(kv)
        await store.initialize()

        templates = await store.get_all()
        assert len(templates) == 5
        assert templates[0].title == "Initial Case Assessment"
        assert all(t.stage_scope == [ANY_STAGE] for t in templates)
        assert all(t.version == 1 and t.usage_count == 0 for t in templates)

    async def test_initialize_is_idempotent(self, kv: InMemoryKeyValueStore):
        store = TaskTemplateStore(kv)
        await store.initialize()
        await store.initialize()

        # 另一个实例共享同一持久化协作方，不再写入种子
        other = TaskTemplateStore(kv)
        await other.initialize()
        assert len(await other.get_all()) == 5

    async def test_empty_collection_is_not_reseeded(self, kv: InMemoryKeyValueStore):
        """全部删除后重新初始化不会恢复默认模板"""
        store = TaskTemplateStore(kv)
        await store.initialize()
        for template in await store.get_all():
            await store.delete(template.id)

        fresh = TaskTemplateStore(kv)
        await fresh.initialize()
        assert await fresh.get_all() == []

    async def test_operations_before_initialize(self, kv: InMemoryKeyValueStore):
        store = TaskTemplateStore(kv)
        assert not store.ready
        with pytest.raises(StoreNotReadyError):
            await store.get_all()


class TestCreate:
    """创建与校验"""

    async def test_create_assigns_identity(self, template_store, template_data):
        template = await template_store.create(template_data)

        assert template.id
        assert template.version == 1
        assert template.usage_count == 0
        assert template.created_at == template.updated_at
        assert await template_store.get_by_id(template.id) == template

    async def test_create_ignores_managed_fields(self, template_store, template_data):
        template = await template_store.create(
            {**template_data, "id": "custom", "usage_count": 42, "version": 9}
        )
        assert template.id != "custom"
        assert template.usage_count == 0
        assert template.version == 1

    async def test_create_reports_all_violations(self, template_store):
        """缺少必填字段时返回全部违反的规则，不写入"""
        with pytest.raises(ValidationError) as exc_info:
            await template_store.create(
                {"category": "General", "estimated_hours": 0, "stage_scope": []}
            )

        errors = exc_info.value.errors
        assert "Title is required" in errors
        assert "Description is required" in errors
        assert "Assigned role is required" in errors
        assert "Estimated hours must be greater than 0" in errors
        assert "At least one stage scope is required" in errors
        assert await template_store.get_all() == []

    async def test_omitted_category_uses_default(self, template_store, template_data):
        data = {k: v for k, v in template_data.items() if k != "category"}
        template = await template_store.create(data)
        assert template.category == "General"

    async def test_blank_category_is_rejected(self, template_store, template_data):
        with pytest.raises(ValidationError) as exc_info:
            await template_store.create({**template_data, "category": "  "})
        assert exc_info.value.errors == ["Category is required"]

    async def test_create_rejects_inverted_case_value_range(
        self, template_store, template_data
    ):
        with pytest.raises(ValidationError) as exc_info:
            await template_store.create(
                {**template_data, "conditions": {"case_value": {"min": 100, "max": 10}}}
            )
        assert exc_info.value.errors == ["Case value minimum must not exceed maximum"]

    async def test_create_reports_type_errors(self, template_store, template_data):
        with pytest.raises(ValidationError) as exc_info:
            await template_store.create({**template_data, "priority": "Urgent"})
        assert any(e.startswith("priority:") for e in exc_info.value.errors)


class TestUpdateCloneDelete:
    """更新、克隆、删除"""

    async def test_update_bumps_version(self, template_store, template_data):
        template = await template_store.create(template_data)
        updated = await template_store.update(
            template.id, {"title": "File Reply v2", "id": "other"}
        )

        assert updated.id == template.id
        assert updated.title == "File Reply v2"
        assert updated.version == 2
        assert updated.created_at == template.created_at
        assert updated.updated_at >= template.updated_at

    async def test_update_unknown_id(self, template_store):
        with pytest.raises(NotFoundError):
            await template_store.update("missing", {"title": "x"})

    async def test_invalid_update_leaves_record_unchanged(
        self, template_store, template_data
    ):
        template = await template_store.create(template_data)
        with pytest.raises(ValidationError):
            await template_store.update(template.id, {"title": "  "})
        assert await template_store.get_by_id(template.id) == template

    async def test_clone(self, template_store, template_data):
        template = await template_store.create(template_data)
        await template_store.increment_usage(template.id)

        clone = await template_store.clone(template.id)
        assert clone.id != template.id
        assert clone.title == "File GST Reply — Copy"
        assert clone.usage_count == 0
        assert clone.version == 1

        named = await template_store.clone(template.id, title="Custom")
        assert named.title == "Custom"
        assert len(await template_store.get_all()) == 3

    async def test_delete(self, template_store, template_data):
        template = await template_store.create(template_data)
        await template_store.delete(template.id)
        assert await template_store.get_by_id(template.id) is None
        with pytest.raises(NotFoundError):
            await template_store.delete(template.id)


class TestQueries:
    """查询"""

    async def test_get_by_stage_scope(self, template_store, template_data):
        demand = await template_store.create(template_data)
        wildcard = await template_store.create(
            {**template_data, "title": "Any", "stage_scope": [ANY_STAGE]}
        )
        await template_store.create(
            {**template_data, "title": "Tribunal", "stage_scope": ["Tribunal"]}
        )
        await template_store.create(
            {**template_data, "title": "Disabled", "is_active": False}
        )

        matched = await template_store.get_by_stage_scope("Demand")
        assert [t.id for t in matched] == [demand.id, wildcard.id]

    async def test_get_all_preserves_insertion_order(
        self, template_store, template_data
    ):
        titles = ["B", "A", "C"]
        for title in titles:
            await template_store.create({**template_data, "title": title})
        assert [t.title for t in await template_store.get_all()] == titles

    async def test_available_stages(self):
        stages = TaskTemplateStore.available_stages()
        assert stages[: len(GST_STAGES)] == GST_STAGES
        assert stages[-1] == ANY_STAGE


class TestUsage:
    """usage 计数"""

    async def test_increment_does_not_bump_version(self, template_store, template_data):
        template = await template_store.create(template_data)
        await template_store.increment_usage(template.id)

        stored = await template_store.get_by_id(template.id)
        assert stored.usage_count == 1
        assert stored.version == 1

    async def test_increment_unknown_is_noop(self, template_store):
        await template_store.increment_usage("missing")
        assert await template_store.get_all() == []

    async def test_concurrent_increments_are_not_lost(
        self, template_store, template_data
    ):
        template = await template_store.create(template_data)
        await asyncio.gather(
            *(template_store.increment_usage(template.id) for _ in range(20))
        )
        stored = await template_store.get_by_id(template.id)
        assert stored.usage_count == 20


class TestStatsAndExchange:
    """统计与导入导出"""

    async def test_stats(self, template_store, template_data):
        await template_store.create(
            {**template_data, "auto_create_on_stage_change": True}
        )
        await template_store.create(
            {**template_data, "suggest_on_stage_change": True, "is_active": False}
        )
        assert await template_store.get_stats() == {
            "total": 2,
            "active": 1,
            "auto_create": 1,
            "suggest": 1,
        }

    async def test_export_then_import_replaces_collection(
        self, template_store, template_data
    ):
        template = await template_store.create(template_data)
        exported = await template_store.export_json()

        await template_store.create({**template_data, "title": "Extra"})
        count = await template_store.import_json(exported)

        assert count == 1
        assert [t.id for t in await template_store.get_all()] == [template.id]

    async def test_import_invalid_json(self, template_store):
        with pytest.raises(ValidationError) as exc_info:
            await template_store.import_json("{not json")
        assert exc_info.value.errors[0].startswith("Invalid JSON:")

    async def test_import_requires_array(self, template_store):
        with pytest.raises(ValidationError) as exc_info:
            await template_store.import_json(json.dumps({"title": "x"}))
        assert exc_info.value.errors == [
            "Invalid format: expected an array of templates"
        ]

    async def test_import_is_all_or_nothing(self, template_store, template_data):
        existing = await template_store.create(template_data)
        payload = json.dumps([template_data, {**template_data, "title": ""}])

        with pytest.raises(ValidationError) as exc_info:
            await template_store.import_json(payload)

        assert exc_info.value.errors == ["Template 2: Title is required"]
        assert [t.id for t in await template_store.get_all()] == [existing.id]


class TestPersistenceFailure:
    """持久化失败"""

    async def test_write_failure_leaves_state_unchanged(
        self, failing_kv, template_data
    ):
        store = TaskTemplateStore(failing_kv, seeds=[])
        await store.initialize()
        template = await store.create(template_data)

        failing_kv.fail_set = True
        with pytest.raises(PersistenceError) as exc_info:
            await store.update(template.id, {"title": "Changed"})
        assert exc_info.value.recoverable
        assert isinstance(exc_info.value.original_error, OSError)

        failing_kv.fail_set = False
        assert (await store.get_by_id(template.id)).title == template_data["title"]

    async def test_read_failure(self, failing_kv):
        store = TaskTemplateStore(failing_kv, seeds=[])
        await store.initialize()
        failing_kv.fail_get = True
        with pytest.raises(PersistenceError) as exc_info:
            await store.get_all()
        assert exc_info.value.operation == "get"
