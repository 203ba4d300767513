"""AutomationEventEmitter -- 领域事件的类型化入口

每种领域事件一个方法：校验 payload 结构后封装为 DomainEvent 交给 EventBus。
结构不合法时抛出 ValidationError，不发布任何事件。
"""

from datetime import UTC, datetime
from typing import Any, TypeVar

import structlog
from caseflow.core.exceptions import ValidationError
from caseflow.core.validation import format_pydantic_errors
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from ulid import ULID

from .event_hub import EventBus
from .events import (
    CaseCreatedPayload,
    DocumentUploadedPayload,
    DomainEvent,
    DomainEventType,
    HearingScheduledPayload,
    HearingUpdatedPayload,
    StageChangedPayload,
    TaskCompletedPayload,
    TaskCreatedPayload,
)

log = structlog.get_logger()

P = TypeVar("P", bound=BaseModel)


def _validate_payload(model_cls: type[P], payload: P | dict[str, Any]) -> P:
    data = payload.model_dump() if isinstance(payload, BaseModel) else payload
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(format_pydantic_errors(e)) from e


class AutomationEventEmitter:
    """领域事件发射器"""

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus

    async def _emit(
        self,
        event_type: DomainEventType,
        model_cls: type[BaseModel],
        payload: BaseModel | dict[str, Any],
    ) -> DomainEvent:
        validated = _validate_payload(model_cls, payload)
        event = DomainEvent(
            event_id=str(ULID()),
            type=event_type,
            ts=datetime.now(UTC),
            payload=validated.model_dump(mode="json"),
        )
        await self._bus.publish(event)
        log.debug(
            "domain_event_emitted",
            event_type=str(event_type),
            event_id=event.event_id,
        )
        return event

    async def stage_changed(
        self, payload: StageChangedPayload | dict[str, Any]
    ) -> DomainEvent:
        """案件阶段变更"""
        return await self._emit(
            DomainEventType.CASE_STAGE_CHANGED, StageChangedPayload, payload
        )

    async def hearing_scheduled(
        self, payload: HearingScheduledPayload | dict[str, Any]
    ) -> DomainEvent:
        """听证排期"""
        return await self._emit(
            DomainEventType.HEARING_SCHEDULED, HearingScheduledPayload, payload
        )

    async def hearing_updated(
        self, payload: HearingUpdatedPayload | dict[str, Any]
    ) -> DomainEvent:
        """听证更新"""
        return await self._emit(
            DomainEventType.HEARING_UPDATED, HearingUpdatedPayload, payload
        )

    async def document_uploaded(
        self, payload: DocumentUploadedPayload | dict[str, Any]
    ) -> DomainEvent:
        """文档上传"""
        return await self._emit(
            DomainEventType.DOCUMENT_UPLOADED, DocumentUploadedPayload, payload
        )

    async def case_created(
        self, payload: CaseCreatedPayload | dict[str, Any]
    ) -> DomainEvent:
        """案件创建"""
        return await self._emit(
            DomainEventType.CASE_CREATED, CaseCreatedPayload, payload
        )

    async def task_created(
        self, payload: TaskCreatedPayload | dict[str, Any]
    ) -> DomainEvent:
        """任务创建"""
        return await self._emit(
            DomainEventType.TASK_CREATED, TaskCreatedPayload, payload
        )

    async def task_completed(
        self, payload: TaskCompletedPayload | dict[str, Any]
    ) -> DomainEvent:
        """任务完成"""
        return await self._emit(
            DomainEventType.TASK_COMPLETED, TaskCompletedPayload, payload
        )
