# scorecard_api/broadcast.py
from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Dict, List, Tuple

logger = logging.getLogger(__name__)


class Broadcaster:
    """
    Fan-out of newly stored matches to websocket subscribers.

    Each subscriber owns an asyncio.Queue bound to its event loop.
    publish() may be called from any thread (ingestion runs in FastAPI's
    threadpool) and never blocks: a full queue drops the message for that
    subscriber only.
    """

    def __init__(self, max_queue: int = 32):
        self.max_queue = max_queue
        self._lock = threading.Lock()
        self._subs: List[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = []

    def subscribe(self) -> asyncio.Queue:
        """Must be called from inside the subscriber's running event loop."""
        loop = asyncio.get_running_loop()
        q: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue)
        with self._lock:
            self._subs.append((loop, q))
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        with self._lock:
            self._subs = [(l, s) for (l, s) in self._subs if s is not q]

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)

    def publish(self, event: str, payload: Dict[str, Any]) -> int:
        """Returns how many subscribers the message was handed to."""
        message = {"type": event, "data": payload}
        with self._lock:
            subs = list(self._subs)

        delivered = 0
        for loop, q in subs:
            try:
                loop.call_soon_threadsafe(_offer, q, message)
                delivered += 1
            except RuntimeError as e:
                # loop already closed: subscriber is gone
                logger.warning("Dropping dead broadcast subscriber: %s", e)
                self.unsubscribe(q)
        return delivered


def _offer(q: asyncio.Queue, message: Dict[str, Any]) -> None:
    try:
        q.put_nowait(message)
    except asyncio.QueueFull:
        logger.warning("Broadcast queue full; message dropped for one subscriber")
