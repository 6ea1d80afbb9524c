from datetime import timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_

from app.db.base import utcnow
from app.models.inventory.product import Product
from app.models.inventory.stock_taking import StockTaking
from app.models.inventory.stock_taking_assignment import StockTakingAssignment
from app.models.inventory.stock_taking_item import StockTakingItem
from app.models.organization.location import Location
from app.models.shared.enums import StockTakingStatus
from app.schemas.dashboard.dashboard_schema import AdminDashboardResponse, WorkerDashboardResponse
from app.services.inventory.stock_taking_service import StockTakingService

DASHBOARD_LIST_SIZE = 5

class DashboardService:
    def __init__(self, session: AsyncSession, stock_taking_service: StockTakingService):
        self.session = session
        self.stock_taking_service = stock_taking_service

    async def get_admin_dashboard(self) -> AdminDashboardResponse:
        """Counts and recent activity across all stock takings"""
        week_ago = utcnow() - timedelta(days=7)

        return AdminDashboardResponse(
            total_products=await self._scalar(select(func.count(Product.id))),
            total_locations=await self._scalar(select(func.count(Location.id))),
            pending_stock_takings=await self._count_by_status(StockTakingStatus.REQUESTED),
            in_progress_stock_takings=await self._count_by_status(StockTakingStatus.IN_PROGRESS),
            completed_this_week=await self._scalar(
                select(func.count(StockTaking.id)).where(
                    and_(
                        StockTaking.status == StockTakingStatus.COMPLETED,
                        StockTaking.completed_at >= week_ago
                    )
                )
            ),
            total_discrepancies=await self._scalar(
                select(func.count(StockTakingItem.id))
                .join(StockTaking, StockTakingItem.stock_taking_id == StockTaking.id)
                .where(
                    and_(
                        StockTaking.status == StockTakingStatus.COMPLETED,
                        StockTakingItem.counted_quantity.is_not(None),
                        StockTakingItem.counted_quantity != StockTakingItem.expected_quantity
                    )
                )
            ),
            recent_stock_takings=await self.stock_taking_service.get_recent_stock_takings(DASHBOARD_LIST_SIZE),
            discrepancy_alerts=await self.stock_taking_service.get_discrepancy_alerts(DASHBOARD_LIST_SIZE)
        )

    async def get_worker_dashboard(self, user_id: int) -> WorkerDashboardResponse:
        """The worker's open tasks and recent completions"""
        week_ago = utcnow() - timedelta(days=7)
        my_tasks = await self.stock_taking_service.get_worker_stock_takings(user_id)

        completed_this_week = await self._scalar(
            select(func.count(StockTaking.id)).where(
                and_(
                    StockTaking.assignments.any(StockTakingAssignment.user_id == user_id),
                    StockTaking.status == StockTakingStatus.COMPLETED,
                    StockTaking.completed_at >= week_ago
                )
            )
        )

        return WorkerDashboardResponse(
            assigned_tasks=sum(1 for t in my_tasks if t.status == StockTakingStatus.REQUESTED),
            in_progress_tasks=sum(1 for t in my_tasks if t.status == StockTakingStatus.IN_PROGRESS),
            completed_this_week=completed_this_week,
            my_tasks=my_tasks
        )

    async def _count_by_status(self, status: StockTakingStatus) -> int:
        return await self._scalar(
            select(func.count(StockTaking.id)).where(StockTaking.status == status)
        )

    async def _scalar(self, query) -> int:
        result = await self.session.execute(query)
        return result.scalar() or 0
