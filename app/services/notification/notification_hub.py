import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, FrozenSet, Iterable, Optional

logger = logging.getLogger(__name__)

_CLOSED = object()


class ChannelClosedError(Exception):
    """Raised when sending to a channel whose reader has gone away"""


class NotificationChannel:
    """
    Unbounded delivery channel for one live client connection.

    Writers call `send`; the connection's reader iterates the channel with
    `async for` until `close()` is called. Items already queued when the
    channel is closed are still yielded before iteration stops.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        try:
            self._loop: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, item: Any) -> None:
        if self._closed:
            raise ChannelClosedError("Channel is closed")
        self._put(item)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._put(_CLOSED)

    async def receive(self) -> Any:
        item = await self._queue.get()
        if item is _CLOSED:
            # Leave the marker for any other pending reader
            self._queue.put_nowait(_CLOSED)
            raise ChannelClosedError("Channel is closed")
        return item

    def _put(self, item: Any) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            self._queue.put_nowait(item)
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._queue.put_nowait(item)
        else:
            # asyncio.Queue is bound to its loop; hop over from other threads
            loop.call_soon_threadsafe(self._queue.put_nowait, item)

    def __aiter__(self) -> "NotificationChannel":
        return self

    async def __anext__(self) -> Any:
        try:
            return await self.receive()
        except ChannelClosedError:
            raise StopAsyncIteration


class NotificationHub:
    """
    Process-wide registry of live notification channels keyed by user id.

    Each user maps to an immutable set of channels that is replaced on every
    subscribe/unsubscribe, so senders read a consistent snapshot without
    locking. Subscribe and unsubscribe serialize per user only; different
    users never contend.
    """

    def __init__(self):
        self._connections: Dict[int, FrozenSet[NotificationChannel]] = {}
        self._user_locks: Dict[int, threading.Lock] = {}

    def _lock_for(self, user_id: int) -> threading.Lock:
        lock = self._user_locks.get(user_id)
        if lock is None:
            # setdefault is atomic, so racing callers share one lock
            lock = self._user_locks.setdefault(user_id, threading.Lock())
        return lock

    def subscribe(self, user_id: int, channel: NotificationChannel) -> None:
        with self._lock_for(user_id):
            channels = self._connections.get(user_id, frozenset())
            self._connections[user_id] = channels | {channel}
        logger.debug(f"Channel subscribed for user {user_id}")

    def unsubscribe(self, user_id: int, channel: NotificationChannel) -> None:
        with self._lock_for(user_id):
            channels = self._connections.get(user_id)
            if channels is None:
                return
            remaining = channels - {channel}
            if remaining:
                self._connections[user_id] = remaining
            else:
                del self._connections[user_id]
        logger.debug(f"Channel unsubscribed for user {user_id}")

    def get_channels(self, user_id: int) -> FrozenSet[NotificationChannel]:
        return self._connections.get(user_id, frozenset())

    def is_connected(self, user_id: int) -> bool:
        return user_id in self._connections

    @property
    def connected_user_ids(self) -> FrozenSet[int]:
        return frozenset(self._connections)

    async def send_to_user(self, user_id: int, notification: Any) -> None:
        """Deliver to every live channel of the user; closed channels are skipped."""
        channels = self._connections.get(user_id)
        if not channels:
            return

        async def deliver(channel: NotificationChannel):
            try:
                await channel.send(notification)
            except ChannelClosedError:
                pass

        await asyncio.gather(*(deliver(channel) for channel in channels))

    async def send_to_users(self, user_ids: Iterable[int], notification: Any) -> None:
        await asyncio.gather(*(self.send_to_user(user_id, notification) for user_id in user_ids))

    @asynccontextmanager
    async def subscription(self, user_id: int) -> AsyncIterator[NotificationChannel]:
        """Register a fresh channel for the duration of a connection."""
        channel = NotificationChannel()
        self.subscribe(user_id, channel)
        try:
            yield channel
        finally:
            self.unsubscribe(user_id, channel)
            channel.close()


# Shared across all requests in the process
notification_hub = NotificationHub()


def get_notification_hub() -> NotificationHub:
    return notification_hub
