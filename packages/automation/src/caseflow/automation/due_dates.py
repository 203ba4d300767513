"""截止日期计算

due offset 格式: [+|-]<整数><d|w|m>，w = 7 天，m = 30 天。
缺省时 +1 天并记录 debug；格式非法或超出日期范围时 +1 天并记录 warning。
"""

import math
import re
from datetime import date, datetime, timedelta

import structlog
from caseflow.core.config import DEFAULT_DUE_DAYS, HOURS_PER_WORKING_DAY

log = structlog.get_logger()

_OFFSET_PATTERN = re.compile(r"^([+-]?)(\d+)([dwm])$")
_UNIT_DAYS = {"d": 1, "w": 7, "m": 30}


def parse_due_offset(offset: str) -> int | None:
    """解析 due offset 为天数，格式非法返回 None"""
    match = _OFFSET_PATTERN.match(offset.strip())
    if match is None:
        return None
    sign, amount, unit = match.groups()
    try:
        days = int(amount) * _UNIT_DAYS[unit]
    except ValueError:
        # 超过整数字符串长度上限
        return None
    return -days if sign == "-" else days


def compute_due_date(offset: str | None, base: datetime) -> date:
    """基准时间 + offset 得到截止日期"""
    fallback = base.date() + timedelta(days=DEFAULT_DUE_DAYS)
    if offset is None or not offset.strip():
        log.debug("due_offset_absent", fallback_days=DEFAULT_DUE_DAYS)
        return fallback

    days = parse_due_offset(offset)
    if days is not None:
        try:
            return base.date() + timedelta(days=days)
        except OverflowError:
            pass

    log.warning(
        "invalid_due_offset",
        due_offset=offset,
        fallback_days=DEFAULT_DUE_DAYS,
    )
    return fallback


def due_date_from_hours(estimated_hours: float, base: datetime) -> date:
    """按预估工时折算工作日（每天 8 小时，至少 1 天）"""
    days = max(DEFAULT_DUE_DAYS, math.ceil(estimated_hours / HOURS_PER_WORKING_DAY))
    return base.date() + timedelta(days=days)
