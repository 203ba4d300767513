"""TaskTemplateStore -- 任务模板存储

整集合读-改-写；每次变更 version + 1，increment_usage 不变更 version。
"""

import json
from datetime import datetime
from typing import Any

import structlog
from ulid import ULID

from ..config import ANY_STAGE, CLONE_SUFFIX, GST_STAGES, TEMPLATES_KEY
from ..exceptions import NotFoundError, ValidationError
from ..models.template import TaskTemplate
from ..validation import build_validated, template_rule_errors, to_plain
from .collection import IMMUTABLE_FIELDS, CollectionStore
from .protocols import KeyValueStore
from .seeds import DEFAULT_TEMPLATES

log = structlog.get_logger()


def _build_template(data: dict[str, Any]) -> TaskTemplate:
    return build_validated(TaskTemplate, data, template_rule_errors)


class TaskTemplateStore(CollectionStore):
    """任务模板存储"""

    key = TEMPLATES_KEY
    store_name = "TaskTemplateStore"

    def __init__(
        self,
        kv: KeyValueStore,
        seeds: list[dict[str, Any]] | None = None,
    ) -> None:
        """
        Args:
            kv: 持久化协作方
            seeds: 首次初始化写入的模板，None 使用 DEFAULT_TEMPLATES，[] 不写入任何模板
        """
        super().__init__(kv, DEFAULT_TEMPLATES if seeds is None else seeds)

    def _seed_record(self, seed: dict[str, Any], now: datetime) -> dict[str, Any]:
        return self._new_template(seed, now).model_dump(mode="json")

    @staticmethod
    def _new_template(data: dict[str, Any], now: datetime) -> TaskTemplate:
        payload = {
            k: v for k, v in to_plain(data).items() if k not in IMMUTABLE_FIELDS
        }
        payload.update(
            id=str(ULID()),
            version=1,
            usage_count=0,
            created_at=now,
            updated_at=now,
        )
        return _build_template(payload)

    async def create(self, data: dict[str, Any]) -> TaskTemplate:
        """创建模板

        Raises:
            ValidationError: 任一规则不满足（包含全部违反的规则），不写入
        """
        async with self._lock:
            records = await self._load()
            template = self._new_template(data, self._now())
            records.append(template.model_dump(mode="json"))
            await self._write(records)

        log.info(
            "task_template_created",
            template_id=template.id,
            title=template.title,
        )
        return template

    async def update(self, template_id: str, patch: dict[str, Any]) -> TaskTemplate:
        """合并 patch 并重新校验；id 永不改变

        Raises:
            NotFoundError: 模板不存在（不做任何修改）
            ValidationError: 合并后不满足规则
        """
        async with self._lock:
            records = await self._load()
            index = self._index_of(records, template_id)
            if index is None:
                raise NotFoundError("Task template", template_id)

            current = records[index]
            merged = {
                **current,
                **{
                    k: v
                    for k, v in to_plain(patch).items()
                    if k not in IMMUTABLE_FIELDS
                },
            }
            merged["version"] = current["version"] + 1
            merged["updated_at"] = self._now()
            template = _build_template(merged)

            records[index] = template.model_dump(mode="json")
            await self._write(records)

        log.info(
            "task_template_updated",
            template_id=template.id,
            version=template.version,
        )
        return template

    async def clone(self, template_id: str, title: str | None = None) -> TaskTemplate:
        """克隆模板：新 id、usage=0、version=1，标题默认追加 ' — Copy'"""
        async with self._lock:
            records = await self._load()
            index = self._index_of(records, template_id)
            if index is None:
                raise NotFoundError("Task template", template_id)

            source = records[index]
            data = dict(source)
            data["title"] = title if title is not None else f"{source['title']}{CLONE_SUFFIX}"
            cloned = self._new_template(data, self._now())
            records.append(cloned.model_dump(mode="json"))
            await self._write(records)

        log.info(
            "task_template_cloned",
            source_id=template_id,
            template_id=cloned.id,
        )
        return cloned

    async def delete(self, template_id: str) -> None:
        """永久删除模板"""
        async with self._lock:
            records = await self._load()
            index = self._index_of(records, template_id)
            if index is None:
                raise NotFoundError("Task template", template_id)
            del records[index]
            await self._write(records)

        log.info("task_template_deleted", template_id=template_id)

    async def get_by_id(self, template_id: str) -> TaskTemplate | None:
        records = await self._load()
        index = self._index_of(records, template_id)
        if index is None:
            return None
        return TaskTemplate.model_validate(records[index])

    async def get_all(self) -> list[TaskTemplate]:
        """按写入顺序返回全部模板"""
        records = await self._load()
        return [TaskTemplate.model_validate(r) for r in records]

    async def get_by_stage_scope(self, stage: str) -> list[TaskTemplate]:
        """返回 stage_scope 包含该阶段或 'Any Stage' 的启用模板，保持写入顺序"""
        return [
            t
            for t in await self.get_all()
            if t.is_active and (stage in t.stage_scope or ANY_STAGE in t.stage_scope)
        ]

    async def increment_usage(self, template_id: str) -> None:
        """usage + 1（不变更 version）；模板不存在时为 no-op"""
        async with self._lock:
            records = await self._load()
            index = self._index_of(records, template_id)
            if index is None:
                log.debug("increment_usage_unknown_template", template_id=template_id)
                return
            record = records[index]
            record["usage_count"] = record.get("usage_count", 0) + 1
            record["updated_at"] = self._now().isoformat()
            await self._write(records)

    async def get_stats(self) -> dict[str, int]:
        """模板统计"""
        templates = await self.get_all()
        return {
            "total": len(templates),
            "active": sum(1 for t in templates if t.is_active),
            "auto_create": sum(1 for t in templates if t.auto_create_on_stage_change),
            "suggest": sum(1 for t in templates if t.suggest_on_stage_change),
        }

    async def export_json(self) -> str:
        """导出全部模板为 JSON 数组"""
        records = await self._load()
        return json.dumps(records, ensure_ascii=False, indent=2)

    async def import_json(self, text: str) -> int:
        """导入 JSON 数组并整体替换集合

        任一条目不合法时不写入任何内容，错误以 'Template <n>: ' 前缀汇总。

        Returns:
            导入的模板数量
        """
        try:
            entries = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError([f"Invalid JSON: {e.msg}"]) from e
        if not isinstance(entries, list):
            raise ValidationError(["Invalid format: expected an array of templates"])

        now = self._now()
        errors: list[str] = []
        templates: list[TaskTemplate] = []
        seen: set[str] = set()
        for n, entry in enumerate(entries, start=1):
            if not isinstance(entry, dict):
                errors.append(f"Template {n}: Template must be an object")
                continue
            data = {
                "id": str(ULID()),
                "created_at": now,
                "updated_at": now,
                **entry,
            }
            if data["id"] in seen:
                errors.append(f"Template {n}: Duplicate template id '{data['id']}'")
            seen.add(data["id"])
            try:
                templates.append(_build_template(data))
            except ValidationError as e:
                errors.extend(f"Template {n}: {msg}" for msg in e.errors)
        if errors:
            raise ValidationError(errors)

        async with self._lock:
            self._ensure_ready()
            await self._write([t.model_dump(mode="json") for t in templates])

        log.info("task_templates_imported", count=len(templates))
        return len(templates)

    @staticmethod
    def available_stages() -> list[str]:
        """已知生命周期阶段 + 通配阶段"""
        return [*GST_STAGES, ANY_STAGE]
