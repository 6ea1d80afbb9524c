import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy import and_, desc, update
from app.db.base import utcnow
from app.models.inventory.stock_level import StockLevel
from app.models.inventory.stock_taking import StockTaking
from app.models.inventory.stock_taking_assignment import StockTakingAssignment
from app.models.inventory.stock_taking_item import StockTakingItem
from app.models.organization.location import Location
from app.models.shared.enums import NotificationType, StockTakingStatus
from app.schemas.inventory.stock_taking import (
    DiscrepancyAlert, StockTakingDetail, StockTakingItemRead, StockTakingProgress, StockTakingSummary
)
from app.services.notification.notification_service import NotificationService
from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.utils.variance import calculate_progress_percent, calculate_variance_percent

logger = logging.getLogger(__name__)


class TransitionRejection(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INVALID_STATUS = "INVALID_STATUS"
    NOT_ASSIGNED = "NOT_ASSIGNED"
    ITEMS_NOT_COUNTED = "ITEMS_NOT_COUNTED"


@dataclass
class TransitionResult:
    """Outcome of a status transition; falsy when the transition was rejected"""
    stock_taking: Optional[StockTaking] = None
    rejection: Optional[TransitionRejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None

    def __bool__(self) -> bool:
        return self.ok


def _summary_options():
    return (
        selectinload(StockTaking.location),
        selectinload(StockTaking.requested_by),
        selectinload(StockTaking.assignments).selectinload(StockTakingAssignment.user),
        selectinload(StockTaking.items),
    )


def _detail_options():
    return (
        selectinload(StockTaking.location),
        selectinload(StockTaking.requested_by),
        selectinload(StockTaking.assignments).selectinload(StockTakingAssignment.user),
        selectinload(StockTaking.items).selectinload(StockTakingItem.product),
        selectinload(StockTaking.items).selectinload(StockTakingItem.counted_by),
    )


class StockTakingService:
    def __init__(self, db: AsyncSession, notification_service: NotificationService):
        self.db = db
        self.notification_service = notification_service

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create_stock_taking(
        self,
        location_id: int,
        requested_by_id: int,
        assigned_worker_ids: List[int],
        notes: Optional[str] = None
    ) -> StockTaking:
        """
        Open a stock taking at a location.

        Every product stocked at the location gets an item whose expected
        quantity is copied from the current stock level. Later stock changes
        do not touch these items. Assigned workers are notified.
        """
        result = await self.db.execute(
            select(Location)
            .options(selectinload(Location.stock_levels))
            .where(Location.id == location_id)
        )
        location = result.scalar_one_or_none()
        if not location:
            raise NotFoundError("Location not found")

        now = utcnow()
        stock_taking = StockTaking(
            location_id=location_id,
            requested_by_id=requested_by_id,
            status=StockTakingStatus.REQUESTED,
            notes=notes,
            created_at=now,
            created_by=requested_by_id
        )
        self.db.add(stock_taking)
        await self.db.flush()  # Get the ID

        for worker_id in assigned_worker_ids:
            self.db.add(StockTakingAssignment(
                stock_taking_id=stock_taking.id,
                user_id=worker_id,
                assigned_at=now,
                created_by=requested_by_id
            ))

        for stock_level in location.stock_levels:
            self.db.add(StockTakingItem(
                stock_taking_id=stock_taking.id,
                product_id=stock_level.product_id,
                expected_quantity=stock_level.quantity,
                created_by=requested_by_id
            ))

        await self.db.commit()
        logger.info(
            f"Stock taking {stock_taking.id} requested at location {location_id} "
            f"by user {requested_by_id} with {len(location.stock_levels)} items"
        )

        if assigned_worker_ids:
            await self.notification_service.create_notifications_for_users(
                assigned_worker_ids,
                "Stock Taking Requested",
                f"You have been assigned to count stock at {location.name}",
                NotificationType.STOCK_TAKING_REQUESTED,
                f"/stock-taking/{stock_taking.id}/perform"
            )

        return await self.get_stock_taking(stock_taking.id)

    async def start_stock_taking(self, stock_taking_id: int, user_id: int) -> TransitionResult:
        """Move a requested stock taking to in progress on behalf of an assigned worker"""
        result = await self.db.execute(
            select(StockTaking)
            .options(
                selectinload(StockTaking.location),
                selectinload(StockTaking.assignments)
            )
            .where(StockTaking.id == stock_taking_id)
        )
        stock_taking = result.scalar_one_or_none()

        if not stock_taking:
            return self._reject(stock_taking_id, "start", TransitionRejection.NOT_FOUND)
        if stock_taking.status != StockTakingStatus.REQUESTED:
            return self._reject(stock_taking_id, "start", TransitionRejection.INVALID_STATUS)
        if not any(a.user_id == user_id for a in stock_taking.assignments):
            return self._reject(stock_taking_id, "start", TransitionRejection.NOT_ASSIGNED)

        if not await self._advance_status(
            stock_taking,
            StockTakingStatus.REQUESTED,
            StockTakingStatus.IN_PROGRESS,
            user_id,
            started_at=utcnow()
        ):
            return self._reject(stock_taking_id, "start", TransitionRejection.INVALID_STATUS)

        logger.info(f"Stock taking {stock_taking_id} started by user {user_id}")

        await self.notification_service.create_notification(
            stock_taking.requested_by_id,
            "Stock Taking Started",
            f"Stock taking at {stock_taking.location.name} has been started",
            NotificationType.STOCK_TAKING_STARTED,
            f"/stock-taking/{stock_taking.id}"
        )

        return TransitionResult(stock_taking=stock_taking)

    async def update_item_count(
        self,
        item_id: int,
        counted_quantity: int,
        counted_by_id: int,
        notes: Optional[str] = None
    ) -> bool:
        """Record a count for one item. Re-counting overwrites the previous count."""
        if counted_quantity < 0:
            return False

        result = await self.db.execute(
            select(StockTakingItem)
            .options(selectinload(StockTakingItem.stock_taking))
            .where(StockTakingItem.id == item_id)
        )
        item = result.scalar_one_or_none()

        if not item:
            return False
        if item.stock_taking.status != StockTakingStatus.IN_PROGRESS:
            return False

        item.counted_quantity = counted_quantity
        item.counted_by_id = counted_by_id
        item.counted_at = utcnow()
        item.notes = notes
        item.updated_by = counted_by_id

        await self.db.commit()
        return True

    async def complete_stock_taking(
        self,
        stock_taking_id: int,
        completed_by_id: Optional[int] = None
    ) -> TransitionResult:
        """Close an in-progress stock taking once every item has been counted"""
        result = await self.db.execute(
            select(StockTaking)
            .options(
                selectinload(StockTaking.location),
                selectinload(StockTaking.items)
            )
            .where(StockTaking.id == stock_taking_id)
        )
        stock_taking = result.scalar_one_or_none()

        if not stock_taking:
            return self._reject(stock_taking_id, "complete", TransitionRejection.NOT_FOUND)
        if stock_taking.status != StockTakingStatus.IN_PROGRESS:
            return self._reject(stock_taking_id, "complete", TransitionRejection.INVALID_STATUS)
        if any(not item.is_counted for item in stock_taking.items):
            return self._reject(stock_taking_id, "complete", TransitionRejection.ITEMS_NOT_COUNTED)

        discrepancies = sum(1 for item in stock_taking.items if item.is_discrepancy)

        if not await self._advance_status(
            stock_taking,
            StockTakingStatus.IN_PROGRESS,
            StockTakingStatus.COMPLETED,
            completed_by_id,
            completed_at=utcnow()
        ):
            return self._reject(stock_taking_id, "complete", TransitionRejection.INVALID_STATUS)

        logger.info(f"Stock taking {stock_taking_id} completed with {discrepancies} discrepancies")

        location_name = stock_taking.location.name
        if discrepancies > 0:
            message = f"Stock taking at {location_name} completed with {discrepancies} discrepancies"
        else:
            message = f"Stock taking at {location_name} completed with no discrepancies"

        await self.notification_service.create_notification(
            stock_taking.requested_by_id,
            "Stock Taking Completed",
            message,
            NotificationType.STOCK_TAKING_COMPLETED,
            f"/stock-taking/{stock_taking.id}/review"
        )

        return TransitionResult(stock_taking=stock_taking)

    async def accept_counts(self, stock_taking_id: int, accepted_by_id: Optional[int] = None) -> bool:
        """Write counted quantities of a completed stock taking back into stock levels"""
        result = await self.db.execute(
            select(StockTaking)
            .options(selectinload(StockTaking.items))
            .where(StockTaking.id == stock_taking_id)
        )
        stock_taking = result.scalar_one_or_none()

        if not stock_taking or stock_taking.status != StockTakingStatus.COMPLETED:
            logger.info(f"Accepting counts rejected for stock taking {stock_taking_id}")
            return False

        counted_items = [item for item in stock_taking.items if item.is_counted]
        if counted_items:
            levels = await self.db.execute(
                select(StockLevel).where(
                    and_(
                        StockLevel.location_id == stock_taking.location_id,
                        StockLevel.product_id.in_([item.product_id for item in counted_items])
                    )
                )
            )
            stock_by_product = {level.product_id: level for level in levels.scalars().all()}

            now = utcnow()
            for item in counted_items:
                stock_level = stock_by_product.get(item.product_id)
                # Stock rows removed since the count started are skipped
                if stock_level is None:
                    continue
                stock_level.quantity = item.counted_quantity
                stock_level.updated_at = now
                stock_level.updated_by = accepted_by_id

        await self.db.commit()
        logger.info(f"Counts of stock taking {stock_taking_id} accepted into stock levels")
        return True

    async def _advance_status(
        self,
        stock_taking: StockTaking,
        from_status: StockTakingStatus,
        to_status: StockTakingStatus,
        user_id: Optional[int],
        **timestamps
    ) -> bool:
        """
        Compare-and-set the status in the database. Returns False when another
        request moved the stock taking first.
        """
        result = await self.db.execute(
            update(StockTaking)
            .where(
                and_(
                    StockTaking.id == stock_taking.id,
                    StockTaking.status == from_status
                )
            )
            .values(status=to_status, updated_by=user_id, **timestamps)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.db.rollback()
            return False

        await self.db.commit()
        await self.db.refresh(
            stock_taking,
            attribute_names=["status", "started_at", "completed_at", "updated_at", "updated_by"]
        )
        return True

    def _reject(self, stock_taking_id: int, action: str, rejection: TransitionRejection) -> TransitionResult:
        logger.info(f"Cannot {action} stock taking {stock_taking_id}: {rejection.value}")
        return TransitionResult(rejection=rejection)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_stock_taking(self, stock_taking_id: int) -> Optional[StockTaking]:
        result = await self.db.execute(
            select(StockTaking)
            .options(*_detail_options())
            .where(StockTaking.id == stock_taking_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_stock_taking_detail(self, stock_taking_id: int) -> Optional[StockTakingDetail]:
        stock_taking = await self.get_stock_taking(stock_taking_id)
        if not stock_taking:
            return None
        return to_detail(stock_taking)

    async def get_item(self, item_id: int) -> Optional[StockTakingItem]:
        result = await self.db.execute(
            select(StockTakingItem)
            .options(
                selectinload(StockTakingItem.product),
                selectinload(StockTakingItem.counted_by)
            )
            .where(StockTakingItem.id == item_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_progress(self, stock_taking_id: int) -> Optional[StockTakingProgress]:
        result = await self.db.execute(
            select(StockTaking)
            .options(selectinload(StockTaking.items))
            .where(StockTaking.id == stock_taking_id)
        )
        stock_taking = result.scalar_one_or_none()
        if not stock_taking:
            return None

        total = len(stock_taking.items)
        counted = sum(1 for item in stock_taking.items if item.is_counted)
        return StockTakingProgress(
            stock_taking_id=stock_taking.id,
            total_items=total,
            counted_items=counted,
            progress_percent=calculate_progress_percent(counted, total)
        )

    async def get_recent_stock_takings(self, take: Optional[int] = None) -> List[StockTakingSummary]:
        result = await self.db.execute(
            select(StockTaking)
            .options(*_summary_options())
            .order_by(desc(StockTaking.created_at), desc(StockTaking.id))
            .limit(take or settings.RECENT_STOCK_TAKINGS_LIMIT)
        )
        return [to_summary(st) for st in result.scalars().all()]

    async def get_worker_stock_takings(self, user_id: int) -> List[StockTakingSummary]:
        """Open (not completed) stock takings the worker is assigned to"""
        result = await self.db.execute(
            select(StockTaking)
            .options(*_summary_options())
            .where(
                and_(
                    StockTaking.assignments.any(StockTakingAssignment.user_id == user_id),
                    StockTaking.status != StockTakingStatus.COMPLETED
                )
            )
            .order_by(desc(StockTaking.created_at), desc(StockTaking.id))
        )
        return [to_summary(st) for st in result.scalars().all()]

    async def get_discrepancy_alerts(self, take: Optional[int] = None) -> List[DiscrepancyAlert]:
        """Most recently counted discrepant items across completed stock takings"""
        result = await self.db.execute(
            select(StockTakingItem)
            .join(StockTaking, StockTakingItem.stock_taking_id == StockTaking.id)
            .options(
                selectinload(StockTakingItem.product),
                selectinload(StockTakingItem.stock_taking).selectinload(StockTaking.location)
            )
            .where(
                and_(
                    StockTaking.status == StockTakingStatus.COMPLETED,
                    StockTakingItem.counted_quantity.is_not(None),
                    StockTakingItem.counted_quantity != StockTakingItem.expected_quantity
                )
            )
            .order_by(desc(StockTakingItem.counted_at), desc(StockTakingItem.id))
            .limit(take or settings.DISCREPANCY_ALERT_LIMIT)
        )

        return [
            DiscrepancyAlert(
                stock_taking_id=item.stock_taking_id,
                product_name=item.product.name,
                product_sku=item.product.sku,
                location_name=item.stock_taking.location.name,
                expected_quantity=item.expected_quantity,
                counted_quantity=item.counted_quantity,
                variance=item.variance,
                variance_percent=calculate_variance_percent(
                    item.expected_quantity,
                    item.counted_quantity,
                    settings.ALERT_VARIANCE_PRECISION
                )
            )
            for item in result.scalars().all()
        ]

    async def is_user_assigned(self, stock_taking_id: int, user_id: int) -> bool:
        result = await self.db.execute(
            select(StockTakingAssignment.id).where(
                and_(
                    StockTakingAssignment.stock_taking_id == stock_taking_id,
                    StockTakingAssignment.user_id == user_id
                )
            ).limit(1)
        )
        return result.scalar_one_or_none() is not None


def to_item_read(item: StockTakingItem) -> StockTakingItemRead:
    return StockTakingItemRead(
        id=item.id,
        stock_taking_id=item.stock_taking_id,
        product_id=item.product_id,
        product_sku=item.product.sku,
        product_name=item.product.name,
        product_category=item.product.category,
        expected_quantity=item.expected_quantity,
        counted_quantity=item.counted_quantity,
        counted_at=item.counted_at,
        counted_by_id=item.counted_by_id,
        counted_by_name=item.counted_by.full_name if item.counted_by else None,
        notes=item.notes,
        is_counted=item.is_counted,
        variance=item.variance,
        variance_percent=item.variance_percent
    )


def _summary_fields(stock_taking: StockTaking) -> dict:
    items = stock_taking.items
    total = len(items)
    counted = sum(1 for item in items if item.is_counted)
    return dict(
        id=stock_taking.id,
        location_id=stock_taking.location_id,
        location_name=stock_taking.location.name,
        location_code=stock_taking.location.code,
        status=stock_taking.status,
        created_at=stock_taking.created_at,
        started_at=stock_taking.started_at,
        completed_at=stock_taking.completed_at,
        requested_by_name=stock_taking.requested_by.full_name,
        assigned_workers=[a.user.full_name for a in stock_taking.assignments],
        total_items=total,
        counted_items=counted,
        discrepancy_count=sum(1 for item in items if item.is_discrepancy),
        progress_percent=calculate_progress_percent(counted, total)
    )


def to_summary(stock_taking: StockTaking) -> StockTakingSummary:
    return StockTakingSummary(**_summary_fields(stock_taking))


def to_detail(stock_taking: StockTaking) -> StockTakingDetail:
    items = sorted(stock_taking.items, key=lambda i: i.product.name)
    return StockTakingDetail(
        **_summary_fields(stock_taking),
        requested_by_id=stock_taking.requested_by_id,
        assigned_worker_ids=[a.user_id for a in stock_taking.assignments],
        notes=stock_taking.notes,
        matched_items=sum(1 for item in items if item.is_counted and not item.is_discrepancy),
        items=[to_item_read(item) for item in items]
    )
