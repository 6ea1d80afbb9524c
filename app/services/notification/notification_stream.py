from typing import AsyncIterator
from app.schemas.notification.notification_schema import NotificationRead
from app.services.notification.notification_hub import NotificationHub


def format_sse(data: str, event: str = "message") -> str:
    """Render one server-sent event frame"""
    lines = "".join(f"data: {line}\n" for line in data.splitlines() or [""])
    return f"event: {event}\n{lines}\n"


async def notification_event_stream(hub: NotificationHub, user_id: int) -> AsyncIterator[str]:
    """
    Yield SSE frames for every notification pushed to the user until the
    consumer stops iterating. The hub subscription is released on any exit,
    including cancellation when the client disconnects.
    """
    async with hub.subscription(user_id) as channel:
        yield ": connected\n\n"
        async for notification in channel:
            if isinstance(notification, NotificationRead):
                payload = notification.model_dump_json()
            else:
                payload = str(notification)
            yield format_sse(payload, "message")
            yield format_sse("update", "notification-update")
