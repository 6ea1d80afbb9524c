import logging
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_async_session
from app.api.dependencies import get_current_user, get_notification_service
from app.models.auth import User
from app.schemas.notification.notification_schema import NotificationList, NotificationRead, UnreadCount
from app.services.notification.notification_hub import NotificationHub, get_notification_hub
from app.services.notification.notification_service import NotificationService
from app.services.notification.notification_stream import notification_event_stream

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/stream")
async def stream_notifications(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
    hub: NotificationHub = Depends(get_notification_hub),
):
    """Server-sent event feed of the user's new notifications"""
    user_id = current_user.id
    # Hand the pooled connection back before the long-lived response starts
    await db.close()

    logger.info(f"Notification stream opened for user {user_id}")
    return StreamingResponse(
        notification_event_stream(hub, user_id),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/", response_model=NotificationList)
async def get_notifications(
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user),
):
    """Get user's notifications"""
    notifications = await service.get_user_notifications(current_user.id)
    unread_count = await service.get_unread_count(current_user.id)

    return NotificationList(
        notifications=[NotificationRead.model_validate(n) for n in notifications],
        unread_count=unread_count,
    )


@router.get("/unread-count", response_model=UnreadCount)
async def get_unread_count(
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user),
):
    """Get count of unread notifications"""
    return UnreadCount(count=await service.get_unread_count(current_user.id))


@router.post("/read-all")
async def mark_all_notifications_read(
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user),
):
    updated = await service.mark_all_as_read(current_user.id)
    return {"message": "All notifications marked as read", "updated": updated}


@router.post("/{notification_id}/read")
async def mark_notification_read(
    notification_id: int,
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user),
):
    """Mark notification as read"""
    await service.mark_as_read(notification_id, current_user.id)
    return {"message": "Notification marked as read"}
