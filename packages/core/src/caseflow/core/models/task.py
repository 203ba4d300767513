"""Task 输出模型与编排结果

Task 由编排器物化后即归任务管理子系统所有，本核心不再修改。
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from .conditions import AutomationFlags
from .enums import ExecutionMode, SkipReason, TaskPriority, TaskSource


class Task(BaseModel):
    """物化的工作项"""

    task_id: str = Field(description="唯一标识，ULID 格式")
    title: str
    description: str = Field(default="")
    case_id: str
    client_id: str = Field(default="")
    case_number: str = Field(default="")
    stage: str
    priority: TaskPriority
    category: str = Field(default="General")
    assigned_to_id: str
    assigned_to_name: str
    assigned_by_id: str = Field(default="system")
    assigned_by_name: str = Field(default="Task Automation")
    estimated_hours: float | None = Field(default=None)
    due_date: date
    source: TaskSource
    source_id: str = Field(description="来源任务包或模板 ID")
    source_name: str = Field(description="来源任务包名称或模板标题")
    bundle_item_id: str | None = Field(default=None)
    depends_on: list[str] = Field(
        default_factory=list,
        description="已创建的依赖任务 ID（仅关联）",
    )
    automation_flags: AutomationFlags = Field(default_factory=AutomationFlags)
    checklist: list[str] = Field(default_factory=list)
    trigger_event: str = Field(default="")
    is_auto_generated: bool = Field(default=True)
    created_at: datetime


class SkippedItem(BaseModel):
    """被跳过的条目"""

    item_id: str
    title: str
    reason: SkipReason
    detail: str = Field(default="")


class FailedItem(BaseModel):
    """创建失败的条目（部分创建失败，按条目记录，不抛出）"""

    item_id: str
    title: str
    error_type: str
    error_message: str


class BundleRunResult(BaseModel):
    """一次任务包执行的结构化结果"""

    bundle_id: str
    bundle_name: str
    execution_mode: ExecutionMode
    created_tasks: list[Task] = Field(default_factory=list)
    skipped_items: list[SkippedItem] = Field(default_factory=list)
    failed_items: list[FailedItem] = Field(default_factory=list)

    @property
    def total_tasks_created(self) -> int:
        return len(self.created_tasks)

    @property
    def success(self) -> bool:
        """没有条目创建失败"""
        return not self.failed_items


class TemplateRunResult(BaseModel):
    """一次模板执行的结构化结果 -- task / unmet_conditions / failure 至多一项有值"""

    template_id: str
    template_title: str
    task: Task | None = None
    unmet_conditions: list[str] = Field(default_factory=list)
    failure: FailedItem | None = None

    @property
    def success(self) -> bool:
        return self.failure is None
