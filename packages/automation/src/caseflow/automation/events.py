"""领域事件类型、payload 与事件信封

外部服务通过 AutomationEventEmitter 宣告领域事件；
payload 只做结构校验，不包含业务逻辑。
"""

from datetime import date, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class DomainEventType(StrEnum):
    """领域事件类型"""

    CASE_STAGE_CHANGED = "case_stage_changed"
    HEARING_SCHEDULED = "hearing_scheduled"
    HEARING_UPDATED = "hearing_updated"
    DOCUMENT_UPLOADED = "document_uploaded"
    CASE_CREATED = "case_created"
    TASK_CREATED = "task_created"
    TASK_COMPLETED = "task_completed"


class StageChangedPayload(BaseModel):
    """case_stage_changed 事件 payload"""

    case_id: str
    case_number: str = Field(default="")
    client_id: str = Field(default="")
    from_stage: str | None = Field(default=None)
    to_stage: str
    changed_by: str = Field(default="system")


class HearingScheduledPayload(BaseModel):
    """hearing_scheduled 事件 payload"""

    case_id: str
    hearing_id: str
    hearing_date: date
    stage: str = Field(default="")
    forum: str = Field(default="")


class HearingUpdatedPayload(BaseModel):
    """hearing_updated 事件 payload"""

    case_id: str
    hearing_id: str
    hearing_date: date | None = Field(default=None)
    status: str = Field(default="")
    outcome: str = Field(default="")


class DocumentUploadedPayload(BaseModel):
    """document_uploaded 事件 payload"""

    case_id: str
    document_id: str
    file_name: str
    document_type: str = Field(default="")
    uploaded_by: str = Field(default="system")


class CaseCreatedPayload(BaseModel):
    """case_created 事件 payload"""

    case_id: str
    case_number: str
    client_id: str
    stage: str


class TaskCreatedPayload(BaseModel):
    """task_created 事件 payload"""

    task_id: str
    case_id: str
    title: str
    source: str
    source_id: str
    assigned_to_id: str
    due_date: date


class TaskCompletedPayload(BaseModel):
    """task_completed 事件 payload"""

    task_id: str
    case_id: str
    completed_by: str
    completed_at: datetime


class DomainEvent(BaseModel):
    """事件信封"""

    event_id: str = Field(description="唯一标识，ULID 格式，时间有序")
    type: DomainEventType
    ts: datetime
    payload: dict[str, Any] = Field(default_factory=dict)
