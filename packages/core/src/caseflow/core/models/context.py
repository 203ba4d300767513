"""TriggerContext -- 一次自动化执行的临时上下文（不持久化）"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class TriggerContext(BaseModel):
    """触发上下文"""

    case_id: str
    client_id: str = Field(default="")
    case_number: str = Field(default="")
    stage: str = Field(description="目标阶段")
    trigger_event: str = Field(default="case_stage_changed")
    notice_type: str | None = Field(default=None)
    client_tier: str | None = Field(default=None)
    case_value: float | None = Field(default=None)
    triggered_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    triggered_by: str = Field(default="system")
