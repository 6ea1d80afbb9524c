import logging
from typing import Union
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_async_session
from app.api.dependencies import get_current_user, get_stock_taking_service
from app.models.auth.user import User
from app.services.dashboard.dashboard_service import DashboardService
from app.services.inventory.stock_taking_service import StockTakingService
from app.schemas.dashboard.dashboard_schema import AdminDashboardResponse, WorkerDashboardResponse

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/", response_model=Union[AdminDashboardResponse, WorkerDashboardResponse])
async def get_dashboard_data(
    session: AsyncSession = Depends(get_async_session),
    stock_taking_service: StockTakingService = Depends(get_stock_taking_service),
    current_user: User = Depends(get_current_user)
):
    """
    Get dashboard data for the current user's role:
    - Admins: catalogue and location counts, stock takings by status,
      recent stock takings and discrepancy alerts
    - Workers: their open stock takings and this week's completions
    """
    dashboard_service = DashboardService(session, stock_taking_service)
    if current_user.is_admin:
        dashboard_data = await dashboard_service.get_admin_dashboard()
    else:
        dashboard_data = await dashboard_service.get_worker_dashboard(current_user.id)

    logger.info(f"Dashboard data retrieved successfully for user {current_user.id}")
    return dashboard_data
