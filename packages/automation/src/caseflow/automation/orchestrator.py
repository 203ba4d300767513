"""TaskCreationOrchestrator -- 任务包 / 模板到 Task 的编排

任务包执行流程：
1. 加载任务包及按 order_index 排序的条目（不存在抛出 NotFoundError）
2. Sequential：严格按 order_index 逐个求值与创建；Parallel：合格条目并发创建
3. 任务包级条件与条目级条件都满足才创建，不满足记录为 skipped 并继续
4. 单个条目创建失败记录为 failed，不中断其余条目
5. 全部条目处理完成后，至少创建了一个任务时 usage + 1（每次调用一次，而非每个条目）

编排器不做跨调用去重：同一阶段变更调用两次会产生两组任务。
"""

import asyncio
from datetime import UTC, datetime
from typing import Protocol

import structlog
from caseflow.core.exceptions import NotFoundError, PersistenceError
from caseflow.core.models import (
    AutomationFlags,
    BundleItem,
    BundleRunResult,
    ExecutionMode,
    FailedItem,
    SkippedItem,
    SkipReason,
    Task,
    TaskBundleWithItems,
    TaskSource,
    TaskTemplate,
    TemplateRunResult,
    TriggerContext,
)
from caseflow.core.store import TaskBundleStore, TaskTemplateStore
from ulid import ULID

from .assignee import Assignee, AssigneeResolver, PlaceholderAssigneeResolver
from .conditions import explain_conditions
from .config import AutomationConfig, load_automation_config
from .due_dates import compute_due_date, due_date_from_hours
from .emitter import AutomationEventEmitter
from .events import TaskCreatedPayload
from .sinks import TaskSink

log = structlog.get_logger()

_PLACEHOLDER = PlaceholderAssigneeResolver()


class TaskAutomation(Protocol):
    """编排器对调用方暴露的接口"""

    async def create_tasks_from_bundle(
        self, bundle_id: str, context: TriggerContext
    ) -> BundleRunResult:
        """按任务包创建任务"""
        ...

    async def create_task_from_template(
        self, template: TaskTemplate, context: TriggerContext
    ) -> Task | None:
        """按模板创建单个任务，条件不满足返回 None"""
        ...

    async def run_template(
        self, template: TaskTemplate, context: TriggerContext
    ) -> TemplateRunResult:
        """按模板创建单个任务，返回结构化结果"""
        ...

    async def create_task_from_template_id(
        self, template_id: str, context: TriggerContext
    ) -> Task | None:
        """按模板 ID 创建单个任务"""
        ...


class TaskCreationOrchestrator:
    """任务创建编排器"""

    def __init__(
        self,
        template_store: TaskTemplateStore,
        bundle_store: TaskBundleStore,
        task_sink: TaskSink,
        *,
        assignee_resolver: AssigneeResolver | None = None,
        emitter: AutomationEventEmitter | None = None,
        config: AutomationConfig | None = None,
    ) -> None:
        self._templates = template_store
        self._bundles = bundle_store
        self._sink = task_sink
        self._assignees = assignee_resolver or PlaceholderAssigneeResolver()
        self._emitter = emitter
        self._config = config or AutomationConfig()

    # ------------------------------------------------------------------
    # 任务包
    # ------------------------------------------------------------------

    async def create_tasks_from_bundle(
        self, bundle_id: str, context: TriggerContext
    ) -> BundleRunResult:
        """按任务包创建任务

        Raises:
            NotFoundError: 任务包不存在
        """
        bundle = await self._bundles.get_with_items(bundle_id)
        if bundle is None:
            raise NotFoundError("Task bundle", bundle_id)

        result = BundleRunResult(
            bundle_id=bundle.id,
            bundle_name=bundle.name,
            execution_mode=bundle.execution_mode,
        )

        if not bundle.is_runnable:
            detail = f"bundle status={bundle.status}, active={bundle.is_active}"
            result.skipped_items = [
                SkippedItem(
                    item_id=item.id,
                    title=item.title,
                    reason=SkipReason.BUNDLE_INACTIVE,
                    detail=detail,
                )
                for item in bundle.items
            ]
            log.info(
                "bundle_not_runnable",
                bundle_id=bundle.id,
                case_id=context.case_id,
                status=str(bundle.status),
                is_active=bundle.is_active,
            )
            return result

        if bundle.execution_mode == ExecutionMode.SEQUENTIAL:
            await self._run_sequential(bundle, context, result)
        else:
            await self._run_parallel(bundle, context, result)

        # 并行条目全部完成后才记账，每次调用至多 + 1
        if result.created_tasks:
            try:
                await self._bundles.increment_usage(bundle.id)
            except PersistenceError as e:
                log.error(
                    "bundle_usage_increment_failed",
                    bundle_id=bundle.id,
                    error_type=type(e.original_error).__name__,
                )

        log.info(
            "bundle_run_completed",
            bundle_id=bundle.id,
            case_id=context.case_id,
            execution_mode=str(bundle.execution_mode),
            created=result.total_tasks_created,
            skipped=len(result.skipped_items),
            failed=len(result.failed_items),
        )
        return result

    @staticmethod
    def _ineligibility(
        bundle: TaskBundleWithItems,
        item: BundleItem,
        context: TriggerContext,
    ) -> str | None:
        """任务包级与条目级条件的不满足说明；None 表示合格"""
        unmet = [
            f"bundle {reason}" for reason in explain_conditions(bundle.conditions, context)
        ]
        unmet.extend(explain_conditions(item.conditions, context))
        return "; ".join(unmet) if unmet else None

    @staticmethod
    def _skip(
        result: BundleRunResult,
        item: BundleItem,
        reason: SkipReason,
        detail: str,
    ) -> None:
        result.skipped_items.append(
            SkippedItem(item_id=item.id, title=item.title, reason=reason, detail=detail)
        )
        log.info(
            "bundle_item_skipped",
            bundle_id=item.bundle_id,
            item_id=item.id,
            reason=str(reason),
            detail=detail,
        )

    async def _run_sequential(
        self,
        bundle: TaskBundleWithItems,
        context: TriggerContext,
        result: BundleRunResult,
    ) -> None:
        """严格按 order_index 顺序求值与创建"""
        created: dict[str, str] = {}  # item_id -> task_id

        for item in bundle.items:
            detail = self._ineligibility(bundle, item, context)
            if detail is not None:
                self._skip(result, item, SkipReason.CONDITIONS_NOT_MET, detail)
                continue

            if self._config.strict_dependencies:
                missing = [dep for dep in item.dependencies if dep not in created]
                if missing:
                    self._skip(
                        result,
                        item,
                        SkipReason.DEPENDENCY_NOT_MET,
                        f"dependencies not created: {missing}",
                    )
                    continue

            depends_on = [created[dep] for dep in item.dependencies if dep in created]
            task, failure = await self._materialize_item(
                bundle, item, context, str(ULID()), depends_on
            )
            if task is not None:
                result.created_tasks.append(task)
                created[item.id] = task.task_id
            elif failure is not None:
                result.failed_items.append(failure)

    async def _run_parallel(
        self,
        bundle: TaskBundleWithItems,
        context: TriggerContext,
        result: BundleRunResult,
    ) -> None:
        """合格条目并发创建，创建顺序不保证"""
        eligible: list[BundleItem] = []
        excluded: set[str] = set()
        for item in bundle.items:
            detail = self._ineligibility(bundle, item, context)
            if detail is not None:
                self._skip(result, item, SkipReason.CONDITIONS_NOT_MET, detail)
                excluded.add(item.id)
            else:
                eligible.append(item)

        if self._config.strict_dependencies:
            # 依赖不合格的条目传递性地排除，直到不再变化
            changed = True
            while changed:
                changed = False
                for item in list(eligible):
                    missing = [dep for dep in item.dependencies if dep in excluded]
                    if missing:
                        self._skip(
                            result,
                            item,
                            SkipReason.DEPENDENCY_NOT_MET,
                            f"dependencies not eligible: {missing}",
                        )
                        excluded.add(item.id)
                        eligible.remove(item)
                        changed = True

        # 预分配 task_id，使依赖关联无需等待其他条目完成
        task_ids = {item.id: str(ULID()) for item in eligible}
        semaphore = asyncio.Semaphore(self._config.parallel_max_concurrency)

        async def run(item: BundleItem) -> tuple[Task | None, FailedItem | None]:
            depends_on = [task_ids[dep] for dep in item.dependencies if dep in task_ids]
            async with semaphore:
                return await self._materialize_item(
                    bundle, item, context, task_ids[item.id], depends_on
                )

        outcomes = await asyncio.gather(*(run(item) for item in eligible))
        for task, failure in outcomes:
            if task is not None:
                result.created_tasks.append(task)
            elif failure is not None:
                result.failed_items.append(failure)

    async def _resolve_role(self, role: str) -> Assignee:
        """解析角色；解析器失败时回退到占位身份"""
        try:
            return await self._assignees.resolve(role)
        except Exception as e:
            log.warning(
                "assignee_resolution_failed",
                role=role,
                error_type=type(e).__name__,
            )
            return await _PLACEHOLDER.resolve(role)

    async def _resolve_item_assignee(self, item: BundleItem) -> Assignee:
        if item.assignee_override:
            return Assignee(id=item.assignee_override, name=item.assignee_override)
        return await self._resolve_role(item.assigned_role)

    async def _materialize_item(
        self,
        bundle: TaskBundleWithItems,
        item: BundleItem,
        context: TriggerContext,
        task_id: str,
        depends_on: list[str],
    ) -> tuple[Task | None, FailedItem | None]:
        """创建单个条目的任务；任何失败转为 FailedItem 返回"""
        try:
            assignee = await self._resolve_item_assignee(item)
            task = Task(
                task_id=task_id,
                title=item.title,
                description=item.description,
                case_id=context.case_id,
                client_id=context.client_id,
                case_number=context.case_number,
                stage=item.stage_override or context.stage,
                priority=item.priority,
                category=item.category,
                assigned_to_id=assignee.id,
                assigned_to_name=assignee.name,
                estimated_hours=item.estimated_hours,
                due_date=compute_due_date(item.due_offset, context.triggered_at),
                source=TaskSource.BUNDLE,
                source_id=bundle.id,
                source_name=bundle.name,
                bundle_item_id=item.id,
                depends_on=depends_on,
                automation_flags=(
                    item.automation_flags or bundle.automation_flags or AutomationFlags()
                ),
                checklist=list(item.checklist),
                trigger_event=item.trigger_event or context.trigger_event,
                created_at=datetime.now(UTC),
            )
            saved = await self._sink.save_task(task)
        except Exception as e:
            log.warning(
                "bundle_item_creation_failed",
                bundle_id=bundle.id,
                item_id=item.id,
                error_type=type(e).__name__,
            )
            return None, FailedItem(
                item_id=item.id,
                title=item.title,
                error_type=type(e).__name__,
                error_message=str(e),
            )

        await self._announce(saved)
        return saved, None

    # ------------------------------------------------------------------
    # 模板
    # ------------------------------------------------------------------

    async def create_task_from_template(
        self, template: TaskTemplate, context: TriggerContext
    ) -> Task | None:
        """按模板创建单个任务

        Returns:
            创建的 Task；条件不满足或创建失败时返回 None
        """
        return (await self.run_template(template, context)).task

    async def run_template(
        self, template: TaskTemplate, context: TriggerContext
    ) -> TemplateRunResult:
        """按模板创建单个任务，返回结构化结果

        条件不满足记录在 unmet_conditions；指派或落盘失败记录在 failure，
        不抛出，usage 不增加。
        """
        result = TemplateRunResult(template_id=template.id, template_title=template.title)

        unmet = explain_conditions(template.conditions, context)
        if unmet:
            log.info(
                "template_conditions_not_met",
                template_id=template.id,
                case_id=context.case_id,
                detail="; ".join(unmet),
            )
            result.unmet_conditions = unmet
            return result

        try:
            assignee = await self._resolve_role(template.assigned_role)
            task = Task(
                task_id=str(ULID()),
                title=template.title,
                description=template.description,
                case_id=context.case_id,
                client_id=context.client_id,
                case_number=context.case_number,
                stage=context.stage,
                priority=template.priority,
                category=template.category,
                assigned_to_id=assignee.id,
                assigned_to_name=assignee.name,
                estimated_hours=template.estimated_hours,
                due_date=due_date_from_hours(
                    template.estimated_hours, context.triggered_at
                ),
                source=TaskSource.TEMPLATE,
                source_id=template.id,
                source_name=template.title,
                automation_flags=AutomationFlags(
                    auto_assign=True,
                    notify_assignee=template.suggest_on_stage_change,
                    require_completion_proof=False,
                    suggest_on_trigger=template.suggest_on_stage_change,
                    auto_create_on_trigger=template.auto_create_on_stage_change,
                ),
                trigger_event=context.trigger_event,
                created_at=datetime.now(UTC),
            )
            saved = await self._sink.save_task(task)
        except Exception as e:
            log.error(
                "template_task_creation_failed",
                template_id=template.id,
                error_type=type(e).__name__,
            )
            result.failure = FailedItem(
                item_id=template.id,
                title=template.title,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return result

        await self._announce(saved)

        try:
            await self._templates.increment_usage(template.id)
        except PersistenceError as e:
            log.error(
                "template_usage_increment_failed",
                template_id=template.id,
                error_type=type(e.original_error).__name__,
            )

        log.info(
            "template_task_created",
            template_id=template.id,
            task_id=saved.task_id,
            case_id=context.case_id,
        )
        result.task = saved
        return result

    async def create_task_from_template_id(
        self, template_id: str, context: TriggerContext
    ) -> Task | None:
        """按模板 ID 创建单个任务

        Raises:
            NotFoundError: 模板不存在
        """
        template = await self._templates.get_by_id(template_id)
        if template is None:
            raise NotFoundError("Task template", template_id)
        return await self.create_task_from_template(template, context)

    async def _announce(self, task: Task) -> None:
        """发出 task_created 事件；分发失败只记录日志"""
        if self._emitter is None:
            return
        try:
            await self._emitter.task_created(
                TaskCreatedPayload(
                    task_id=task.task_id,
                    case_id=task.case_id,
                    title=task.title,
                    source=str(task.source),
                    source_id=task.source_id,
                    assigned_to_id=task.assigned_to_id,
                    due_date=task.due_date,
                )
            )
        except Exception as e:
            log.warning(
                "task_created_event_failed",
                task_id=task.task_id,
                error_type=type(e).__name__,
            )


class DisabledTaskAutomation:
    """任务自动化空实现 -- 自动化关闭时替换编排器，调用方无需改动"""

    async def create_tasks_from_bundle(
        self, bundle_id: str, context: TriggerContext
    ) -> BundleRunResult:
        log.debug(
            "task_automation_disabled",
            bundle_id=bundle_id,
            case_id=context.case_id,
        )
        return BundleRunResult(
            bundle_id=bundle_id,
            bundle_name="",
            execution_mode=ExecutionMode.SEQUENTIAL,
        )

    async def create_task_from_template(
        self, template: TaskTemplate, context: TriggerContext
    ) -> Task | None:
        log.debug(
            "task_automation_disabled",
            template_id=template.id,
            case_id=context.case_id,
        )
        return None

    async def run_template(
        self, template: TaskTemplate, context: TriggerContext
    ) -> TemplateRunResult:
        log.debug(
            "task_automation_disabled",
            template_id=template.id,
            case_id=context.case_id,
        )
        return TemplateRunResult(template_id=template.id, template_title=template.title)

    async def create_task_from_template_id(
        self, template_id: str, context: TriggerContext
    ) -> Task | None:
        log.debug(
            "task_automation_disabled",
            template_id=template_id,
            case_id=context.case_id,
        )
        return None


def build_orchestrator(
    template_store: TaskTemplateStore,
    bundle_store: TaskBundleStore,
    task_sink: TaskSink,
    *,
    assignee_resolver: AssigneeResolver | None = None,
    emitter: AutomationEventEmitter | None = None,
    config: AutomationConfig | None = None,
) -> TaskAutomation:
    """根据配置选择编排器实现（关闭自动化时返回空实现）"""
    config = config or load_automation_config()
    if not config.enabled:
        log.info("task_automation_disabled_by_config")
        return DisabledTaskAutomation()
    return TaskCreationOrchestrator(
        template_store,
        bundle_store,
        task_sink,
        assignee_resolver=assignee_resolver,
        emitter=emitter,
        config=config,
    )
