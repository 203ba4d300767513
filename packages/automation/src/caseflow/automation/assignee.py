"""Assignee 解析 -- 角色名到可指派身份

无具体映射时返回稳定的占位身份（角色名小写、空白替换为连字符），
下游系统可据此稍后重新解析。PlaceholderAssigneeResolver 永不失败。
"""

import re
from collections.abc import Mapping
from typing import Protocol

from pydantic import BaseModel

_WHITESPACE = re.compile(r"\s+")


class Assignee(BaseModel):
    """可指派身份"""

    id: str
    name: str


def placeholder_assignee_id(role: str) -> str:
    """'Senior Associate' -> 'senior-associate'"""
    return _WHITESPACE.sub("-", role.strip().lower())


class AssigneeResolver(Protocol):
    """Assignee 解析接口"""

    async def resolve(self, role: str) -> Assignee:
        """将角色名解析为可指派身份"""
        ...


class PlaceholderAssigneeResolver:
    """占位解析：确定性、无外部依赖"""

    async def resolve(self, role: str) -> Assignee:
        return Assignee(id=placeholder_assignee_id(role), name=role)


class MappingAssigneeResolver:
    """按角色映射到具体身份，未映射时回退到 fallback（默认占位解析）"""

    def __init__(
        self,
        mapping: Mapping[str, Assignee],
        fallback: AssigneeResolver | None = None,
    ) -> None:
        self._mapping = dict(mapping)
        self._fallback = fallback or PlaceholderAssigneeResolver()

    async def resolve(self, role: str) -> Assignee:
        assignee = self._mapping.get(role)
        if assignee is not None:
            return assignee
        return await self._fallback.resolve(role)
