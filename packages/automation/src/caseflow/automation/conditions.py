"""资格条件求值 -- 纯函数，无副作用

- 条件为 None 或没有设置任何维度：始终满足
- notice_type / client_tier：要求上下文值属于集合（空集合不接受任何值）
- case_value：已给出的 min / max 边界闭区间成立
- 上下文缺少被约束的属性：该维度不满足
- 所有已设置维度以 AND 组合
"""

from caseflow.core.models import TaskConditions, TriggerContext


def explain_conditions(
    conditions: TaskConditions | None,
    context: TriggerContext,
) -> list[str]:
    """返回不满足的维度说明；空列表表示满足"""
    if conditions is None or conditions.is_empty():
        return []

    unmet: list[str] = []

    if conditions.notice_type is not None:
        if context.notice_type not in conditions.notice_type:
            unmet.append(
                f"notice type {context.notice_type!r} not in {conditions.notice_type}"
            )

    if conditions.client_tier is not None:
        if context.client_tier not in conditions.client_tier:
            unmet.append(
                f"client tier {context.client_tier!r} not in {conditions.client_tier}"
            )

    value_range = conditions.case_value
    if value_range is not None and (
        value_range.min is not None or value_range.max is not None
    ):
        value = context.case_value
        if value is None:
            unmet.append("case value missing")
        elif value_range.min is not None and value < value_range.min:
            unmet.append(f"case value {value} below minimum {value_range.min}")
        elif value_range.max is not None and value > value_range.max:
            unmet.append(f"case value {value} above maximum {value_range.max}")

    return unmet


def evaluate_conditions(
    conditions: TaskConditions | None,
    context: TriggerContext,
) -> bool:
    """条件是否满足"""
    return not explain_conditions(conditions, context)
