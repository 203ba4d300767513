"""EventHub -- 内存中领域事件广播器

每个订阅者持有一个 asyncio.Queue，按事件类型订阅；"*" 订阅全部事件。
投递顺序与至少一次语义由真正的事件分发系统负责，此处仅做尽力投递。
"""

import asyncio
from collections import defaultdict
from typing import Protocol

import structlog

from .events import DomainEvent

log = structlog.get_logger()

WILDCARD = "*"


class EventBus(Protocol):
    """事件分发协作方接口"""

    async def publish(self, event: DomainEvent) -> None:
        """将事件分发给订阅者"""
        ...


class EventHub:
    """事件广播器 -- 基于 asyncio.Queue 的发布/订阅模式"""

    def __init__(self, queue_maxsize: int = 100) -> None:
        # event type -> set of asyncio.Queue
        self._subscribers: dict[str, set[asyncio.Queue]] = defaultdict(set)
        self._queue_maxsize = queue_maxsize

    async def subscribe(self, event_type: str = WILDCARD) -> asyncio.Queue:
        """订阅指定类型的事件

        Args:
            event_type: 事件类型，"*" 表示全部

        Returns:
            asyncio.Queue 实例，新事件会被推送到此队列
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_maxsize)
        self._subscribers[event_type].add(queue)
        return queue

    async def unsubscribe(self, event_type: str, queue: asyncio.Queue) -> None:
        """取消订阅"""
        self._subscribers[event_type].discard(queue)
        if not self._subscribers[event_type]:
            del self._subscribers[event_type]

    async def publish(self, event: DomainEvent) -> None:
        """向该类型及通配订阅者广播事件"""
        for key in (str(event.type), WILDCARD):
            dead_queues = []
            for queue in self._subscribers.get(key, set()):
                try:
                    queue.put_nowait(event)
                except asyncio.QueueFull:
                    dead_queues.append(queue)

            # 清理已满的队列
            for q in dead_queues:
                self._subscribers[key].discard(q)
                log.warning(
                    "event_subscriber_dropped",
                    event_type=key,
                    event_id=event.event_id,
                )
            if key in self._subscribers and not self._subscribers[key]:
                del self._subscribers[key]
