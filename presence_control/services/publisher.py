from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..domain.models import StateSnapshot

logger = logging.getLogger(__name__)


class StatePublisher:
    """Fans snapshots out to frontend subscribers.

    Every pass is published; subscribers must tolerate repeats. A full
    subscriber queue drops its oldest snapshot.
    """

    def __init__(self, queue_size: int = 16) -> None:
        self._queue_size = queue_size
        self._subscribers: set[asyncio.Queue] = set()
        self.latest: Optional[StateSnapshot] = None

    def subscribe(self) -> asyncio.Queue:
        q: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        if self.latest is not None:
            q.put_nowait(self.latest)
        self._subscribers.add(q)
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        self._subscribers.discard(q)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, snapshot: StateSnapshot) -> None:
        logger.debug("Publishing %s", snapshot)
        self.latest = snapshot
        for q in self._subscribers:
            if q.full():
                q.get_nowait()
            q.put_nowait(snapshot)
