"""KeyValueStore 内存实现

写入与读取都做深拷贝，调用方拿到的结构不会与存储内容共享引用。
"""

import copy
from typing import Any


class InMemoryKeyValueStore:
    """KeyValueStore 的内存实现"""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, key: str) -> Any | None:
        """读取 key 对应的值"""
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    async def set(self, key: str, value: Any) -> None:
        """整体写入 key 对应的值"""
        self._data[key] = copy.deepcopy(value)
