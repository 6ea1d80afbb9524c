import asyncio
import logging
from typing import Iterable, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, and_
from app.db.base import utcnow
from app.models.alerts.notification import Notification
from app.models.shared.enums import NotificationType
from app.schemas.notification.notification_schema import NotificationRead
from app.services.notification.notification_hub import NotificationHub
from app.core.config import settings

logger = logging.getLogger(__name__)

class NotificationService:
    """Persists user notifications and pushes them to live connections"""

    def __init__(self, db: AsyncSession, hub: NotificationHub):
        self.db = db
        self.hub = hub

    async def create_notification(
        self,
        user_id: int,
        title: str,
        message: str,
        notification_type: NotificationType,
        link: Optional[str] = None
    ) -> Notification:
        """Store a notification, then push it to the user's open connections"""
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=notification_type,
            link=link,
            is_read=False,
            created_at=utcnow()
        )

        self.db.add(notification)
        await self.db.commit()

        await self._push(user_id, NotificationRead.model_validate(notification))
        return notification

    async def create_notifications_for_users(
        self,
        user_ids: Iterable[int],
        title: str,
        message: str,
        notification_type: NotificationType,
        link: Optional[str] = None
    ) -> List[Notification]:
        """Store one notification per user in a single commit, then push each"""
        now = utcnow()
        notifications = [
            Notification(
                user_id=user_id,
                title=title,
                message=message,
                type=notification_type,
                link=link,
                is_read=False,
                created_at=now
            )
            for user_id in user_ids
        ]
        if not notifications:
            return []

        self.db.add_all(notifications)
        await self.db.commit()

        await asyncio.gather(*(
            self._push(notification.user_id, NotificationRead.model_validate(notification))
            for notification in notifications
        ))
        return notifications

    async def _push(self, user_id: int, payload: NotificationRead) -> None:
        # Real-time delivery is best effort; the stored row is the source of truth
        try:
            await self.hub.send_to_user(user_id, payload)
        except Exception as e:
            logger.warning(f"Real-time delivery to user {user_id} failed: {str(e)}")

    async def get_user_notifications(self, user_id: int, take: Optional[int] = None) -> List[Notification]:
        """Get user's most recent notifications, newest first"""
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(take or settings.NOTIFICATION_LIST_LIMIT)
        )
        return list(result.scalars().all())

    async def get_unread_count(self, user_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id))
            .where(
                and_(
                    Notification.user_id == user_id,
                    Notification.is_read == False
                )
            )
        )
        return result.scalar() or 0

    async def mark_as_read(self, notification_id: int, user_id: int) -> None:
        """Mark notification as read; notifications of other users are left untouched"""
        result = await self.db.execute(
            select(Notification)
            .where(
                and_(
                    Notification.id == notification_id,
                    Notification.user_id == user_id
                )
            )
        )
        notification = result.scalar_one_or_none()

        if notification and not notification.is_read:
            notification.is_read = True
            await self.db.commit()

    async def mark_all_as_read(self, user_id: int) -> int:
        """Mark every unread notification of the user as read; returns how many changed"""
        result = await self.db.execute(
            update(Notification)
            .where(
                and_(
                    Notification.user_id == user_id,
                    Notification.is_read == False
                )
            )
            .values(is_read=True)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.commit()
        return result.rowcount or 0
