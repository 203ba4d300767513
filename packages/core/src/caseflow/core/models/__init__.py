"""Caseflow Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .bundle import BundleItem, TaskBundle, TaskBundleWithItems
from .conditions import AutomationFlags, CaseValueRange, TaskConditions
from .context import TriggerContext
from .enums import (
    BundleStatus,
    ExecutionMode,
    SkipReason,
    TaskPriority,
    TaskSource,
    TriggerType,
)
from .task import BundleRunResult, FailedItem, SkippedItem, Task, TemplateRunResult
from .template import TaskTemplate

__all__ = [
    # 枚举
    "TaskPriority",
    "ExecutionMode",
    "BundleStatus",
    "TriggerType",
    "TaskSource",
    "SkipReason",
    # 条件
    "TaskConditions",
    "CaseValueRange",
    "AutomationFlags",
    # 定义
    "TaskTemplate",
    "TaskBundle",
    "TaskBundleWithItems",
    "BundleItem",
    # 上下文
    "TriggerContext",
    # 输出
    "Task",
    "SkippedItem",
    "FailedItem",
    "BundleRunResult",
    "TemplateRunResult",
]
