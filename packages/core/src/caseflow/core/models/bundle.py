"""TaskBundle / BundleItem Domain Model

任务包是共享同一触发器与执行方式的有序条目集合。
条目随任务包记录内嵌持久化，保证任务包与条目一次写入。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .conditions import AutomationFlags, TaskConditions
from .enums import BundleStatus, ExecutionMode, TaskPriority, TriggerType


class BundleItem(BaseModel):
    """任务包条目 -- 一个产生任务的单元"""

    id: str = Field(description="条目 ID")
    bundle_id: str = Field(default="", description="所属任务包 ID")
    title: str = Field(default="")
    description: str = Field(default="")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    estimated_hours: float | None = Field(default=None, description="预估工时（>0）")
    assigned_role: str = Field(default="")
    category: str = Field(default="General")
    dependencies: list[str] = Field(
        default_factory=list,
        description="同包内依赖条目 ID（仅关联展示，严格模式下阻断）",
    )
    order_index: int = Field(default=0, description="Sequential 模式下的执行顺序")
    conditions: TaskConditions | None = Field(default=None)
    automation_flags: AutomationFlags | None = Field(default=None)
    due_offset: str | None = Field(default=None, description="如 '+7d' / '-1w' / '2m'")
    stage_override: str | None = Field(default=None)
    assignee_override: str | None = Field(default=None)
    trigger_type: TriggerType = Field(default=TriggerType.AUTOMATIC)
    trigger_event: str | None = Field(default=None)
    checklist: list[str] = Field(default_factory=list)


class TaskBundle(BaseModel):
    """任务包"""

    id: str = Field(description="唯一标识，ULID 格式")
    name: str = Field(default="")
    description: str = Field(default="")
    stages: list[str] = Field(default_factory=list, description="适用阶段")
    trigger: str = Field(default="", description="触发器 key，如 case_stage_changed")
    is_active: bool = Field(default=True)
    execution_mode: ExecutionMode = Field(default=ExecutionMode.SEQUENTIAL)
    conditions: TaskConditions | None = Field(default=None)
    automation_flags: AutomationFlags | None = Field(default=None)
    bundle_code: str | None = Field(default=None, description="字符集 [A-Za-z0-9_-]")
    status: BundleStatus = Field(default=BundleStatus.ACTIVE)
    usage_count: int = Field(default=0)
    version: int = Field(default=1)
    created_at: datetime
    updated_at: datetime
    created_by: str = Field(default="system")
    updated_by: str = Field(default="system")

    @property
    def is_runnable(self) -> bool:
        """启用且状态为 Active"""
        return self.is_active and self.status == BundleStatus.ACTIVE


class TaskBundleWithItems(TaskBundle):
    """任务包 + 按 order_index 升序排列的条目"""

    items: list[BundleItem] = Field(default_factory=list)

    def to_bundle(self) -> TaskBundle:
        """去掉条目，返回任务包本身"""
        return TaskBundle(**self.model_dump(exclude={"items"}))
