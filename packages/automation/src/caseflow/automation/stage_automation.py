"""StageAutomationService -- 按触发事件选择任务包与模板

调用方不指定任务包时使用：运行触发器与阶段匹配的全部可运行任务包，
为 auto_create_on_stage_change 的模板创建任务，
只标记 suggest_on_stage_change 的模板作为建议返回。
"""

import structlog
from caseflow.core.models import BundleRunResult, Task, TaskTemplate, TriggerContext
from caseflow.core.store import TaskBundleStore, TaskTemplateStore
from pydantic import BaseModel, Field

from .orchestrator import TaskAutomation

log = structlog.get_logger()


class StageAutomationReport(BaseModel):
    """一次阶段变更自动化的汇总"""

    case_id: str
    stage: str
    trigger_event: str
    bundle_results: list[BundleRunResult] = Field(default_factory=list)
    template_tasks: list[Task] = Field(default_factory=list)
    suggested_templates: list[TaskTemplate] = Field(default_factory=list)
    failed_templates: list[str] = Field(
        default_factory=list,
        description="创建失败的模板 ID",
    )

    @property
    def total_tasks_created(self) -> int:
        return len(self.template_tasks) + sum(
            r.total_tasks_created for r in self.bundle_results
        )


class StageAutomationService:
    """阶段变更自动化"""

    def __init__(
        self,
        template_store: TaskTemplateStore,
        bundle_store: TaskBundleStore,
        orchestrator: TaskAutomation,
    ) -> None:
        self._templates = template_store
        self._bundles = bundle_store
        self._orchestrator = orchestrator

    async def handle_stage_change(self, context: TriggerContext) -> StageAutomationReport:
        report = StageAutomationReport(
            case_id=context.case_id,
            stage=context.stage,
            trigger_event=context.trigger_event,
        )

        bundles = await self._bundles.get_by_trigger(
            context.trigger_event, stages=[context.stage]
        )
        for bundle in bundles:
            result = await self._orchestrator.create_tasks_from_bundle(bundle.id, context)
            report.bundle_results.append(result)

        for template in await self._templates.get_by_stage_scope(context.stage):
            if template.auto_create_on_stage_change:
                outcome = await self._orchestrator.run_template(template, context)
                if outcome.failure is not None:
                    report.failed_templates.append(template.id)
                elif outcome.task is not None:
                    report.template_tasks.append(outcome.task)
            elif template.suggest_on_stage_change:
                report.suggested_templates.append(template)

        log.info(
            "stage_automation_completed",
            case_id=context.case_id,
            stage=context.stage,
            trigger_event=context.trigger_event,
            bundles=len(report.bundle_results),
            tasks_created=report.total_tasks_created,
            suggestions=len(report.suggested_templates),
        )
        return report
