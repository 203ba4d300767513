"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、持久化 key 名、案件生命周期阶段列表、截止日期默认值等常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("CASEFLOW_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "CASEFLOW_DB_PATH",
        str(_get_base_dir() / "sqlite" / "caseflow.db"),
    )


# 通配阶段：stage_scope / stages 包含此值时匹配任意阶段
ANY_STAGE: str = "Any Stage"

# GST 案件生命周期阶段（按流转顺序）
GST_STAGES: list[str] = [
    "Scrutiny",
    "Demand",
    "Adjudication",
    "First Appeal",
    "Tribunal",
    "High Court",
    "Supreme Court",
]

# 持久化集合 key（整集合读-改-写）
TEMPLATES_KEY: str = "task_templates"
BUNDLES_KEY: str = "task_bundles"
TASKS_KEY: str = "tasks"

# 缺省/非法 due offset 时的默认天数
DEFAULT_DUE_DAYS: int = 1

# 模板任务按预估工时折算天数
HOURS_PER_WORKING_DAY: int = 8

# 克隆时追加的标题后缀
CLONE_SUFFIX: str = " — Copy"
