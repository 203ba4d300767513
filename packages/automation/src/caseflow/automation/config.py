"""AutomationConfig -- 自动化配置加载

从环境变量加载配置。
"""

import os

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class AutomationConfig(BaseModel):
    """自动化配置 -- 从环境变量加载

    环境变量:
        CASEFLOW_AUTOMATION_ENABLED: 是否启用任务自动化（false 时使用空实现）
        CASEFLOW_STRICT_DEPENDENCIES: 依赖条目被跳过/失败时是否跳过依赖方
        CASEFLOW_PARALLEL_MAX_CONCURRENCY: Parallel 模式最大并发条目数
    """

    enabled: bool = Field(default=True, description="是否启用任务自动化")
    strict_dependencies: bool = Field(
        default=False,
        description="严格依赖模式：依赖未满足的条目被跳过",
    )
    parallel_max_concurrency: int = Field(
        default=8,
        ge=1,
        description="Parallel 模式最大并发条目数",
    )


def _parse_bool(env_var: str, value: str, default: bool) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    log.warning(
        "invalid_bool_config",
        env_var=env_var,
        value=value,
        fallback=default,
    )
    return default


def load_automation_config() -> AutomationConfig:
    """从环境变量加载自动化配置

    非法值记录 warning 并回退到默认值，不阻塞启动。
    """
    kwargs: dict = {}

    if val := os.environ.get("CASEFLOW_AUTOMATION_ENABLED"):
        kwargs["enabled"] = _parse_bool("CASEFLOW_AUTOMATION_ENABLED", val, True)

    if val := os.environ.get("CASEFLOW_STRICT_DEPENDENCIES"):
        kwargs["strict_dependencies"] = _parse_bool(
            "CASEFLOW_STRICT_DEPENDENCIES", val, False
        )

    if val := os.environ.get("CASEFLOW_PARALLEL_MAX_CONCURRENCY"):
        try:
            concurrency = int(val)
        except ValueError:
            concurrency = 0
        if concurrency >= 1:
            kwargs["parallel_max_concurrency"] = concurrency
        else:
            log.warning(
                "invalid_concurrency_config",
                env_var="CASEFLOW_PARALLEL_MAX_CONCURRENCY",
                value=val,
                fallback=8,
            )

    return AutomationConfig(**kwargs)
