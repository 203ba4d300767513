"""TaskBundleStore -- 任务包存储

任务包与其条目作为一条记录整体持久化，一次 set 完成写入。
条目 id 由调用方提供时保留（便于声明同包依赖），否则自动分配。
"""

from collections import Counter
from datetime import datetime
from typing import Any

import structlog
from ulid import ULID

from ..config import ANY_STAGE, BUNDLES_KEY, CLONE_SUFFIX
from ..exceptions import NotFoundError
from ..models.bundle import BundleItem, TaskBundle, TaskBundleWithItems
from ..validation import build_validated, bundle_rule_errors, to_plain
from .collection import IMMUTABLE_FIELDS, CollectionStore
from .protocols import KeyValueStore
from .seeds import DEFAULT_BUNDLES

log = structlog.get_logger()


def _sorted_items(bundle: TaskBundleWithItems) -> TaskBundleWithItems:
    """条目按 order_index 升序（相同 order_index 保持写入顺序）"""
    items = sorted(bundle.items, key=lambda item: item.order_index)
    return bundle.model_copy(update={"items": items})


def _prepare_items(items: Any, bundle_id: str) -> Any:
    """补齐条目 id 并绑定 bundle_id；非列表原样返回交给校验报错"""
    if not isinstance(items, list):
        return items
    prepared = []
    for item in items:
        if isinstance(item, dict):
            item = dict(item)
            if not item.get("id"):
                item["id"] = str(ULID())
            item["bundle_id"] = bundle_id
        prepared.append(item)
    return prepared


def _build_bundle(data: dict[str, Any]) -> TaskBundleWithItems:
    return build_validated(TaskBundleWithItems, data, bundle_rule_errors)


class TaskBundleStore(CollectionStore):
    """任务包存储"""

    key = BUNDLES_KEY
    store_name = "TaskBundleStore"

    def __init__(
        self,
        kv: KeyValueStore,
        seeds: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(kv, DEFAULT_BUNDLES if seeds is None else seeds)

    def _seed_record(self, seed: dict[str, Any], now: datetime) -> dict[str, Any]:
        return self._new_bundle(seed, now).model_dump(mode="json")

    @staticmethod
    def _new_bundle(data: dict[str, Any], now: datetime) -> TaskBundleWithItems:
        payload = {
            k: v for k, v in to_plain(data).items() if k not in IMMUTABLE_FIELDS
        }
        bundle_id = str(ULID())
        payload.update(
            id=bundle_id,
            version=1,
            usage_count=0,
            created_at=now,
            updated_at=now,
            items=_prepare_items(payload.get("items", []), bundle_id),
        )
        return _build_bundle(payload)

    async def create(self, data: dict[str, Any]) -> TaskBundleWithItems:
        """创建任务包（含条目）

        Raises:
            ValidationError: 任一规则不满足（包含全部违反的规则），不写入
        """
        async with self._lock:
            records = await self._load()
            bundle = self._new_bundle(data, self._now())
            records.append(bundle.model_dump(mode="json"))
            await self._write(records)

        log.info(
            "task_bundle_created",
            bundle_id=bundle.id,
            name=bundle.name,
            item_count=len(bundle.items),
        )
        return _sorted_items(bundle)

    async def update(self, bundle_id: str, patch: dict[str, Any]) -> TaskBundleWithItems:
        """合并 patch 并重新校验；patch 含 items 时整体替换条目列表

        Raises:
            NotFoundError: 任务包不存在（不做任何修改）
            ValidationError: 合并后不满足规则
        """
        async with self._lock:
            records = await self._load()
            index = self._index_of(records, bundle_id)
            if index is None:
                raise NotFoundError("Task bundle", bundle_id)

            current = records[index]
            changes = {
                k: v for k, v in to_plain(patch).items() if k not in IMMUTABLE_FIELDS
            }
            if "items" in changes:
                changes["items"] = _prepare_items(changes["items"], bundle_id)
            merged = {**current, **changes}
            merged["version"] = current["version"] + 1
            merged["updated_at"] = self._now()
            bundle = _build_bundle(merged)

            records[index] = bundle.model_dump(mode="json")
            await self._write(records)

        log.info(
            "task_bundle_updated",
            bundle_id=bundle.id,
            version=bundle.version,
        )
        return _sorted_items(bundle)

    async def clone(self, bundle_id: str, name: str | None = None) -> TaskBundleWithItems:
        """克隆任务包：新 id、usage=0、version=1，条目换新 id 并重映射依赖"""
        async with self._lock:
            records = await self._load()
            index = self._index_of(records, bundle_id)
            if index is None:
                raise NotFoundError("Task bundle", bundle_id)

            source = records[index]
            id_map = {item["id"]: str(ULID()) for item in source.get("items", [])}
            items = []
            for item in source.get("items", []):
                copied = dict(item)
                copied["id"] = id_map[item["id"]]
                copied["dependencies"] = [
                    id_map.get(dep, dep) for dep in item.get("dependencies", [])
                ]
                items.append(copied)

            data = {**source, "items": items}
            data["name"] = name if name is not None else f"{source['name']}{CLONE_SUFFIX}"
            cloned = self._new_bundle(data, self._now())
            records.append(cloned.model_dump(mode="json"))
            await self._write(records)

        log.info(
            "task_bundle_cloned",
            source_id=bundle_id,
            bundle_id=cloned.id,
        )
        return _sorted_items(cloned)

    async def delete(self, bundle_id: str) -> None:
        """永久删除任务包及其条目"""
        async with self._lock:
            records = await self._load()
            index = self._index_of(records, bundle_id)
            if index is None:
                raise NotFoundError("Task bundle", bundle_id)
            del records[index]
            await self._write(records)

        log.info("task_bundle_deleted", bundle_id=bundle_id)

    async def _get_all_with_items(self) -> list[TaskBundleWithItems]:
        records = await self._load()
        return [_sorted_items(TaskBundleWithItems.model_validate(r)) for r in records]

    async def get_by_id(self, bundle_id: str) -> TaskBundle | None:
        bundle = await self.get_with_items(bundle_id)
        return bundle.to_bundle() if bundle is not None else None

    async def get_with_items(self, bundle_id: str) -> TaskBundleWithItems | None:
        """任务包 + 按 order_index 升序的条目"""
        records = await self._load()
        index = self._index_of(records, bundle_id)
        if index is None:
            return None
        return _sorted_items(TaskBundleWithItems.model_validate(records[index]))

    async def get_item(self, bundle_id: str, item_id: str) -> BundleItem:
        """查询单个条目

        Raises:
            NotFoundError: 任务包或条目不存在
        """
        bundle = await self.get_with_items(bundle_id)
        if bundle is None:
            raise NotFoundError("Task bundle", bundle_id)
        for item in bundle.items:
            if item.id == item_id:
                return item
        raise NotFoundError("Bundle item", item_id)

    async def get_all(self) -> list[TaskBundle]:
        return [b.to_bundle() for b in await self._get_all_with_items()]

    async def get_by_stage(self, stage: str) -> list[TaskBundle]:
        """可运行且 stages 包含该阶段或 'Any Stage' 的任务包"""
        return [
            b
            for b in await self.get_all()
            if b.is_runnable and (stage in b.stages or ANY_STAGE in b.stages)
        ]

    async def get_by_trigger(
        self,
        trigger: str,
        stages: list[str] | None = None,
    ) -> list[TaskBundle]:
        """可运行且触发器匹配的任务包；给定 stages 时至少一个阶段匹配"""
        matched = []
        for bundle in await self.get_all():
            if not bundle.is_runnable or bundle.trigger != trigger:
                continue
            if stages and ANY_STAGE not in bundle.stages:
                if not any(stage in bundle.stages for stage in stages):
                    continue
            matched.append(bundle)
        return matched

    async def increment_usage(self, bundle_id: str) -> None:
        """usage + 1（不变更 version）；任务包不存在时为 no-op"""
        async with self._lock:
            records = await self._load()
            index = self._index_of(records, bundle_id)
            if index is None:
                log.debug("increment_usage_unknown_bundle", bundle_id=bundle_id)
                return
            record = records[index]
            record["usage_count"] = record.get("usage_count", 0) + 1
            record["updated_at"] = self._now().isoformat()
            await self._write(records)

    async def get_analytics(self) -> dict[str, Any]:
        """任务包统计"""
        bundles = await self.get_all()
        total_usage = sum(b.usage_count for b in bundles)
        by_trigger = Counter(b.trigger for b in bundles)
        by_stage = Counter(stage for b in bundles for stage in b.stages if stage)
        return {
            "total_bundles": len(bundles),
            "active_bundles": sum(1 for b in bundles if b.is_active),
            "average_usage": total_usage / len(bundles) if bundles else 0.0,
            "by_trigger": dict(by_trigger),
            "by_stage": dict(by_stage),
        }
