import asyncio
import threading
import pytest
from app.services.notification.notification_hub import (
    ChannelClosedError, NotificationChannel, NotificationHub
)


class TestNotificationChannel:
    """Delivery channel behaviour"""

    async def test_items_are_received_in_order(self):
        channel = NotificationChannel()
        await channel.send("first")
        await channel.send("second")

        assert await channel.receive() == "first"
        assert await channel.receive() == "second"

    async def test_iteration_drains_queue_then_stops_on_close(self):
        channel = NotificationChannel()
        await channel.send(1)
        await channel.send(2)
        channel.close()

        received = [item async for item in channel]
        assert received == [1, 2]
        assert channel.closed

    async def test_send_after_close_raises(self):
        channel = NotificationChannel()
        channel.close()

        with pytest.raises(ChannelClosedError):
            await channel.send("late")

    async def test_close_wakes_waiting_reader(self):
        channel = NotificationChannel()
        reader = asyncio.create_task(channel.receive())
        await asyncio.sleep(0)

        channel.close()

        with pytest.raises(ChannelClosedError):
            await asyncio.wait_for(reader, timeout=1)

    async def test_send_from_another_thread(self):
        channel = NotificationChannel()

        def worker():
            asyncio.run(channel.send("from thread"))

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        assert await asyncio.wait_for(channel.receive(), timeout=1) == "from thread"


class TestNotificationHub:
    """Registry of live channels per user"""

    async def test_send_reaches_every_channel_of_user(self):
        hub = NotificationHub()
        first, second = NotificationChannel(), NotificationChannel()
        hub.subscribe(1, first)
        hub.subscribe(1, second)

        notification = {"id": 1, "title": "hello"}
        await hub.send_to_user(1, notification)

        assert await first.receive() is notification
        assert await second.receive() is notification

    async def test_send_to_other_user_is_not_delivered(self):
        hub = NotificationHub()
        channel = NotificationChannel()
        hub.subscribe(1, channel)

        await hub.send_to_user(2, "not for you")
        channel.close()

        assert [item async for item in channel] == []

    async def test_send_to_unconnected_user_is_noop(self):
        hub = NotificationHub()
        await hub.send_to_user(42, "nobody listening")
        assert not hub.is_connected(42)

    async def test_closed_channel_does_not_block_others(self):
        hub = NotificationHub()
        closed, open_channel = NotificationChannel(), NotificationChannel()
        hub.subscribe(1, closed)
        hub.subscribe(1, open_channel)
        closed.close()

        await hub.send_to_user(1, "still delivered")

        assert await open_channel.receive() == "still delivered"

    async def test_send_to_users(self):
        hub = NotificationHub()
        channels = {user_id: NotificationChannel() for user_id in (1, 2, 3)}
        for user_id, channel in channels.items():
            hub.subscribe(user_id, channel)

        await hub.send_to_users([1, 3], "batch")

        assert await channels[1].receive() == "batch"
        assert await channels[3].receive() == "batch"
        channels[2].close()
        assert [item async for item in channels[2]] == []

    async def test_unsubscribe_last_channel_removes_user(self):
        hub = NotificationHub()
        first, second = NotificationChannel(), NotificationChannel()
        hub.subscribe(1, first)
        hub.subscribe(1, second)

        hub.unsubscribe(1, first)
        assert hub.get_channels(1) == frozenset({second})

        await hub.send_to_user(1, "after unsubscribe")
        assert await asyncio.wait_for(second.receive(), timeout=1) == "after unsubscribe"
        first.close()
        assert [item async for item in first] == []

        hub.unsubscribe(1, second)
        assert not hub.is_connected(1)
        assert 1 not in hub.connected_user_ids

    async def test_unsubscribe_unknown_is_noop(self):
        hub = NotificationHub()
        hub.unsubscribe(7, NotificationChannel())
        assert hub.connected_user_ids == frozenset()

    async def test_subscription_releases_channel_on_exit(self):
        hub = NotificationHub()

        async with hub.subscription(5) as channel:
            assert hub.get_channels(5) == frozenset({channel})

        assert not hub.is_connected(5)
        assert channel.closed

    async def test_subscription_releases_channel_on_error(self):
        hub = NotificationHub()

        with pytest.raises(RuntimeError):
            async with hub.subscription(5) as channel:
                raise RuntimeError("connection dropped")

        assert not hub.is_connected(5)
        assert channel.closed

    async def test_subscription_releases_channel_on_cancel(self):
        hub = NotificationHub()
        subscribed = asyncio.Event()

        async def listen():
            async with hub.subscription(9) as channel:
                subscribed.set()
                async for _ in channel:
                    pass

        task = asyncio.create_task(listen())
        await asyncio.wait_for(subscribed.wait(), timeout=1)
        assert hub.is_connected(9)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert not hub.is_connected(9)

    def test_concurrent_subscribe_and_unsubscribe_from_threads(self):
        hub = NotificationHub()
        channels = [NotificationChannel() for _ in range(200)]

        def churn(chunk):
            for channel in chunk:
                hub.subscribe(1, channel)
            for channel in chunk[::2]:
                hub.unsubscribe(1, channel)

        threads = [threading.Thread(target=churn, args=(channels[i::4],)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        expected = set()
        for i in range(4):
            expected.update(channels[i::4][1::2])
        assert hub.get_channels(1) == frozenset(expected)

    def test_user_held_registry_does_not_block_other_users(self):
        hub = NotificationHub()
        blocked_user_lock = hub._lock_for(1)
        other = NotificationChannel()

        with blocked_user_lock:
            thread = threading.Thread(target=hub.subscribe, args=(2, other))
            thread.start()
            thread.join(timeout=1)
            assert not thread.is_alive()

        assert hub.get_channels(2) == frozenset({other})
        assert hub._lock_for(1) is blocked_user_lock

    def test_concurrent_subscribe_across_users_from_threads(self):
        hub = NotificationHub()
        channels = {user_id: [NotificationChannel() for _ in range(50)] for user_id in range(8)}

        def connect(user_id):
            for channel in channels[user_id]:
                hub.subscribe(user_id, channel)

        threads = [threading.Thread(target=connect, args=(user_id,)) for user_id in channels]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert hub.connected_user_ids == frozenset(channels)
        for user_id, user_channels in channels.items():
            assert hub.get_channels(user_id) == frozenset(user_channels)
