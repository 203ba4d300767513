"""TaskTemplate Domain Model

可复用、带版本的单任务定义，作用于一个或多个生命周期阶段。
id 不可变；每次变更 version + 1。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .conditions import TaskConditions
from .enums import TaskPriority


class TaskTemplate(BaseModel):
    """任务模板"""

    id: str = Field(description="唯一标识，ULID 格式")
    title: str = Field(default="", description="任务标题")
    description: str = Field(default="", description="任务描述")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="优先级")
    estimated_hours: float = Field(default=1.0, description="预估工时（>0）")
    assigned_role: str = Field(default="", description="指派角色")
    category: str = Field(default="General", description="任务分类")
    stage_scope: list[str] = Field(
        default_factory=list,
        description="适用阶段列表，或通配 'Any Stage'",
    )
    suggest_on_stage_change: bool = Field(default=False, description="阶段变更时建议")
    auto_create_on_stage_change: bool = Field(
        default=False,
        description="阶段变更时自动创建",
    )
    conditions: TaskConditions | None = Field(default=None, description="资格条件")
    dependencies: list[str] = Field(default_factory=list, description="依赖模板 ID")
    is_active: bool = Field(default=True)
    usage_count: int = Field(default=0, description="实际产生任务的次数")
    version: int = Field(default=1, description="单调递增版本号")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")
    created_by: str = Field(default="system")
    updated_by: str = Field(default="system")
