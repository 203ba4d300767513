"""枚举定义

包含 TaskPriority（有序）、ExecutionMode、BundleStatus、TriggerType、
TaskSource、SkipReason 枚举。
"""

from enum import StrEnum


class TaskPriority(StrEnum):
    """任务优先级 -- Critical > High > Medium > Low"""

    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        """数值越大优先级越高"""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK: dict[TaskPriority, int] = {
    TaskPriority.CRITICAL: 4,
    TaskPriority.HIGH: 3,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 1,
}


class ExecutionMode(StrEnum):
    """任务包执行方式"""

    SEQUENTIAL = "Sequential"
    PARALLEL = "Parallel"


class BundleStatus(StrEnum):
    """任务包状态"""

    DRAFT = "Draft"
    ACTIVE = "Active"
    ARCHIVED = "Archived"


class TriggerType(StrEnum):
    """任务包条目触发类型"""

    MANUAL = "Manual"
    AUTOMATIC = "Automatic"
    EVENT = "Event"
    SCHEDULED = "Scheduled"


class TaskSource(StrEnum):
    """任务来源"""

    BUNDLE = "bundle"
    TEMPLATE = "template"


class SkipReason(StrEnum):
    """条目被跳过的原因"""

    CONDITIONS_NOT_MET = "conditions_not_met"
    DEPENDENCY_NOT_MET = "dependency_not_met"
    BUNDLE_INACTIVE = "bundle_inactive"
