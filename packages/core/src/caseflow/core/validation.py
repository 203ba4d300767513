"""定义校验规则

规则作用于补全模型默认值后的原始 dict，pydantic 的类型错误与业务规则错误合并为一份完整列表，
由 build_validated 统一抛出 ValidationError。
"""

import re
from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError

BUNDLE_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

M = TypeVar("M", bound=BaseModel)


def to_plain(value: Any) -> Any:
    """递归地把 pydantic 模型转换为 dict / list"""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _conditions_errors(conditions: Any) -> list[str]:
    if not isinstance(conditions, dict):
        return []
    case_value = conditions.get("case_value")
    if not isinstance(case_value, dict):
        return []
    lo, hi = case_value.get("min"), case_value.get("max")
    if _is_number(lo) and _is_number(hi) and lo > hi:
        return ["Case value minimum must not exceed maximum"]
    return []


def _hours_errors(hours: Any) -> list[str]:
    if _is_number(hours) and hours <= 0:
        return ["Estimated hours must be greater than 0"]
    return []


def template_rule_errors(data: dict[str, Any]) -> list[str]:
    """任务模板业务规则"""
    errors: list[str] = []
    if _blank(data.get("title")):
        errors.append("Title is required")
    if _blank(data.get("description")):
        errors.append("Description is required")
    if _blank(data.get("category")):
        errors.append("Category is required")
    errors.extend(_hours_errors(data.get("estimated_hours")))
    if _blank(data.get("assigned_role")):
        errors.append("Assigned role is required")

    scope = data.get("stage_scope")
    if not isinstance(scope, list) or not scope:
        errors.append("At least one stage scope is required")
    elif any(_blank(stage) for stage in scope):
        errors.append("Stage scope entries must not be blank")

    errors.extend(_conditions_errors(data.get("conditions")))
    return errors


def _item_rule_errors(item: dict[str, Any], item_ids: set[str]) -> list[str]:
    errors: list[str] = []
    if _blank(item.get("title")):
        errors.append("Title is required")
    if _blank(item.get("assigned_role")):
        errors.append("Assigned role is required")
    errors.extend(_hours_errors(item.get("estimated_hours")))
    own_id = item.get("id")
    for dep in item.get("dependencies") or []:
        if dep == own_id or dep not in item_ids:
            errors.append(
                f"Dependency '{dep}' does not reference another item in this bundle"
            )
    errors.extend(_conditions_errors(item.get("conditions")))
    return errors


def bundle_rule_errors(data: dict[str, Any]) -> list[str]:
    """任务包业务规则（含条目规则，条目错误以 'Item <n>: ' 前缀）"""
    errors: list[str] = []
    if _blank(data.get("name")):
        errors.append("Name is required")
    if _blank(data.get("trigger")):
        errors.append("Trigger is required")

    stages = data.get("stages")
    if not isinstance(stages, list) or not stages:
        errors.append("At least one stage is required")
    elif any(_blank(stage) for stage in stages):
        errors.append("Stage entries must not be blank")

    code = data.get("bundle_code")
    if code is not None and (
        not isinstance(code, str) or not BUNDLE_CODE_PATTERN.match(code)
    ):
        errors.append(
            "Bundle code may only contain letters, digits, underscores and hyphens"
        )

    errors.extend(_conditions_errors(data.get("conditions")))

    items = data.get("items") or []
    if not isinstance(items, list):
        # 类型错误由 pydantic 报告
        items = []
    item_ids = {item.get("id") for item in items if isinstance(item, dict)}
    seen: set[str] = set()
    for n, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            errors.append(f"Item {n}: Item must be an object")
            continue
        item_id = item.get("id")
        if item_id in seen:
            errors.append(f"Item {n}: Duplicate item id '{item_id}'")
        seen.add(item_id)
        errors.extend(f"Item {n}: {e}" for e in _item_rule_errors(item, item_ids))
    return errors


def format_pydantic_errors(exc: PydanticValidationError) -> list[str]:
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"])
        messages.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return messages


def _model_defaults(model_cls: type[BaseModel]) -> dict[str, Any]:
    return {
        name: field.get_default(call_default_factory=True)
        for name, field in model_cls.model_fields.items()
        if not field.is_required()
    }


def build_validated(
    model_cls: type[M],
    data: dict[str, Any],
    rules: Callable[[dict[str, Any]], list[str]],
) -> M:
    """执行业务规则 + pydantic 校验，任一失败即抛出包含全部错误的 ValidationError

    缺省字段先补上模型默认值再执行业务规则，显式传入的空值仍按规则报错。
    """
    errors = rules({**_model_defaults(model_cls), **data})
    model: M | None = None
    try:
        model = model_cls.model_validate(data)
    except PydanticValidationError as e:
        errors.extend(format_pydantic_errors(e))
    if errors or model is None:
        raise ValidationError(errors)
    return model
