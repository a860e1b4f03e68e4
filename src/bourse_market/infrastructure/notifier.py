"""Market change notifications.

Observers (UI, dashboards) can subscribe instead of polling. Delivery is best
effort: a committed transition never fails because a notification could not
be sent.

Backends:
  - InProcessNotifier: one bounded asyncio.Queue per subscriber
  - RedisNotifier:     Redis Pub/Sub, JSON payload on channel "bourse:events"
  - NullNotifier:      discards everything
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from redis.exceptions import RedisError

from src.bourse_common.datetime_utils import utc_now
from src.bourse_common.enums import MarketEventType
from src.bourse_common.redis_client import get_redis

logger = logging.getLogger(__name__)

REDIS_CHANNEL = "bourse:events"


@dataclass(frozen=True)
class MarketEvent:
    type: MarketEventType
    product_id: str
    payload: dict[str, Any]
    emitted_at: datetime = field(default_factory=utc_now)

    def to_json(self) -> str:
        return json.dumps(
            {
                "type": self.type.value,
                "product_id": self.product_id,
                "payload": self.payload,
                "emitted_at": self.emitted_at.isoformat(),
            },
            default=str,
        )


class MarketNotifierProtocol(Protocol):
    async def publish(self, event: MarketEvent) -> None: ...


class NullNotifier:
    async def publish(self, event: MarketEvent) -> None:
        return None


class InProcessNotifier:
    def __init__(self, max_queue_size: int = 256) -> None:
        self._max_queue_size = max_queue_size
        self._subscribers: set[asyncio.Queue[MarketEvent]] = set()

    def subscribe(self) -> asyncio.Queue[MarketEvent]:
        queue: asyncio.Queue[MarketEvent] = asyncio.Queue(maxsize=self._max_queue_size)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[MarketEvent]) -> None:
        self._subscribers.discard(queue)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, event: MarketEvent) -> None:
        for queue in list(self._subscribers):
            if queue.full():
                # slow consumer: drop its oldest event, keep the newest
                queue.get_nowait()
                logger.warning("notifier: subscriber queue full, dropped oldest event")
            queue.put_nowait(event)


class RedisNotifier:
    def __init__(self, channel: str = REDIS_CHANNEL) -> None:
        self._channel = channel

    async def publish(self, event: MarketEvent) -> None:
        try:
            redis = await get_redis()
            await redis.publish(self._channel, event.to_json())
        except RedisError as exc:
            logger.warning(
                "notifier: failed to publish %s for %s: %s",
                event.type.value, event.product_id, exc,
            )
