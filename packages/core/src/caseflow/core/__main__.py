"""CLI 入口模块 -- python -m caseflow.core <command>

支持的命令：
  seed              初始化 SQLite 数据库并写入默认模板与任务包
  stats             输出模板统计与任务包统计（JSON）
  export-templates  输出全部模板（JSON）
"""

import asyncio
import json
import sys

from .config import get_db_path
from .logging_config import setup_logging

_COMMANDS = ("seed", "stats", "export-templates")


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m caseflow.core <command>")
        print("命令:")
        print("  seed              初始化数据库并写入默认定义")
        print("  stats             输出模板与任务包统计")
        print("  export-templates  导出全部模板")
        sys.exit(1)

    setup_logging()
    command = sys.argv[1]

    if command == "seed":
        asyncio.run(seed())
    elif command == "stats":
        asyncio.run(stats())
    elif command == "export-templates":
        asyncio.run(export_templates())
    else:
        print(f"未知命令: {command}")
        print(f"可用命令: {', '.join(_COMMANDS)}")
        sys.exit(1)


async def seed() -> None:
    """初始化数据库（集合为空时写入默认定义）"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    group = await create_store_group(db_path)
    try:
        templates = await group.template_store.get_all()
        bundles = await group.bundle_store.get_all()
        print(f"初始化完成: {len(templates)} 个模板, {len(bundles)} 个任务包")
    finally:
        await group.close()


async def stats() -> None:
    """输出统计信息"""
    from .store import create_store_group

    group = await create_store_group(get_db_path())
    try:
        report = {
            "templates": await group.template_store.get_stats(),
            "bundles": await group.bundle_store.get_analytics(),
        }
        print(json.dumps(report, ensure_ascii=False, indent=2))
    finally:
        await group.close()


async def export_templates() -> None:
    """导出全部模板"""
    from .store import create_store_group

    group = await create_store_group(get_db_path())
    try:
        print(await group.template_store.export_json())
    finally:
        await group.close()


if __name__ == "__main__":
    main()
