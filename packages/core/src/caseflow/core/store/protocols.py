"""Store Protocol 接口定义

KeyValueStore 是持久化协作方的抽象：对不透明集合做整体 get/set。
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from typing import Any, Protocol


class KeyValueStore(Protocol):
    """持久化协作方接口

    值为 JSON 兼容结构（dict / list / str / 数字 / bool / None）。
    """

    async def get(self, key: str) -> Any | None:
        """读取 key 对应的值，不存在返回 None"""
        ...

    async def set(self, key: str, value: Any) -> None:
        """整体写入 key 对应的值"""
        ...
