"""Caseflow Automation -- 任务自动化编排

条件求值、指派解析、截止日期计算、任务包 / 模板编排与领域事件发射。
"""

from .assignee import (
    Assignee,
    AssigneeResolver,
    MappingAssigneeResolver,
    PlaceholderAssigneeResolver,
    placeholder_assignee_id,
)
from .conditions import evaluate_conditions, explain_conditions
from .config import AutomationConfig, load_automation_config
from .due_dates import compute_due_date, due_date_from_hours, parse_due_offset
from .emitter import AutomationEventEmitter
from .event_hub import WILDCARD, EventBus, EventHub
from .events import DomainEvent, DomainEventType
from .orchestrator import (
    DisabledTaskAutomation,
    TaskAutomation,
    TaskCreationOrchestrator,
    build_orchestrator,
)
from .sinks import InMemoryTaskSink, KeyValueTaskSink, TaskSink
from .stage_automation import StageAutomationReport, StageAutomationService

__all__ = [
    # 编排
    "TaskAutomation",
    "TaskCreationOrchestrator",
    "DisabledTaskAutomation",
    "build_orchestrator",
    "StageAutomationService",
    "StageAutomationReport",
    # 配置
    "AutomationConfig",
    "load_automation_config",
    # 条件 / 截止日期 / 指派
    "evaluate_conditions",
    "explain_conditions",
    "parse_due_offset",
    "compute_due_date",
    "due_date_from_hours",
    "Assignee",
    "AssigneeResolver",
    "PlaceholderAssigneeResolver",
    "MappingAssigneeResolver",
    "placeholder_assignee_id",
    # 落盘
    "TaskSink",
    "InMemoryTaskSink",
    "KeyValueTaskSink",
    # 事件
    "DomainEvent",
    "DomainEventType",
    "EventBus",
    "EventHub",
    "WILDCARD",
    "AutomationEventEmitter",
]
