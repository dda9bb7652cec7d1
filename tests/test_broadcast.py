from __future__ import annotations

import asyncio
import threading

from scorecard_api.broadcast import Broadcaster


def test_publish_reaches_every_subscriber():
    async def scenario():
        bus = Broadcaster()
        q1, q2 = bus.subscribe(), bus.subscribe()

        assert bus.publish("match_added", {"id": "m1"}) == 2
        await asyncio.sleep(0)

        assert q1.get_nowait() == {"type": "match_added", "data": {"id": "m1"}}
        assert q2.get_nowait() == {"type": "match_added", "data": {"id": "m1"}}

    asyncio.run(scenario())


def test_publish_from_worker_thread():
    async def scenario():
        bus = Broadcaster()
        q = bus.subscribe()

        t = threading.Thread(target=bus.publish, args=("match_reverted", {"id": "m3"}))
        t.start()
        t.join()

        message = await asyncio.wait_for(q.get(), timeout=1)
        assert message["type"] == "match_reverted"

    asyncio.run(scenario())


def test_full_queue_drops_message():
    async def scenario():
        bus = Broadcaster(max_queue=1)
        q = bus.subscribe()

        bus.publish("match_added", {"id": "m1"})
        bus.publish("match_added", {"id": "m2"})
        await asyncio.sleep(0)

        assert q.qsize() == 1
        assert q.get_nowait()["data"] == {"id": "m1"}

    asyncio.run(scenario())


def test_unsubscribe():
    async def scenario():
        bus = Broadcaster()
        q = bus.subscribe()
        bus.unsubscribe(q)
        assert bus.subscriber_count == 0
        assert bus.publish("match_added", {}) == 0

    asyncio.run(scenario())


def test_closed_loop_subscriber_is_dropped():
    bus = Broadcaster()

    async def subscribe():
        bus.subscribe()

    asyncio.run(subscribe())

    assert bus.subscriber_count == 1
    assert bus.publish("match_added", {"id": "m1"}) == 0
    assert bus.subscriber_count == 0
