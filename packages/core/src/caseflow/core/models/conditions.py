"""资格条件与自动化标记模型

None 表示“该维度未设置”（不做约束）；空列表表示“已设置但为空”（不接受任何值），
两者在模型上保持可区分。
"""

from pydantic import BaseModel, Field


class CaseValueRange(BaseModel):
    """案件金额区间（闭区间，边界可缺省）"""

    min: float | None = Field(default=None, description="最小金额（含）")
    max: float | None = Field(default=None, description="最大金额（含）")


class TaskConditions(BaseModel):
    """资格条件 -- 所有已设置维度以 AND 组合"""

    notice_type: list[str] | None = Field(default=None, description="可接受的通知类型")
    client_tier: list[str] | None = Field(default=None, description="可接受的客户等级")
    case_value: CaseValueRange | None = Field(default=None, description="案件金额区间")

    def is_empty(self) -> bool:
        """没有任何维度被设置"""
        return (
            self.notice_type is None
            and self.client_tier is None
            and self.case_value is None
        )


class AutomationFlags(BaseModel):
    """自动化标记"""

    auto_assign: bool = True
    notify_assignee: bool = True
    require_completion_proof: bool = False
    suggest_on_trigger: bool = False
    auto_create_on_trigger: bool = False
