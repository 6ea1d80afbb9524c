import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from app.api.dependencies import get_current_user, get_current_admin, get_stock_taking_service
from app.core.exceptions import ForbiddenError, InvalidTransitionError, NotFoundError, ValidationError
from app.models.auth.user import User
from app.schemas.inventory.stock_taking import (
    DiscrepancyAlert, StockTakingCreate, StockTakingDetail, StockTakingItemCount,
    StockTakingItemRead, StockTakingProgress, StockTakingSummary
)
from app.services.auth.user_service import UserService
from app.services.inventory.stock_taking_service import (
    StockTakingService, TransitionRejection, TransitionResult, to_detail, to_item_read
)

router = APIRouter()
logger = logging.getLogger(__name__)

_REJECTION_ERRORS = {
    TransitionRejection.NOT_FOUND: lambda: NotFoundError("Stock taking not found"),
    TransitionRejection.NOT_ASSIGNED: lambda: ForbiddenError("You are not assigned to this stock taking"),
    TransitionRejection.INVALID_STATUS: lambda: InvalidTransitionError("Stock taking is not in the required status"),
    TransitionRejection.ITEMS_NOT_COUNTED: lambda: InvalidTransitionError("All items must be counted first"),
}

def _raise_for_rejection(result: TransitionResult) -> None:
    if not result:
        raise _REJECTION_ERRORS[result.rejection]()

@router.post("/", response_model=StockTakingDetail, status_code=status.HTTP_201_CREATED)
async def create_stock_taking(
    data: StockTakingCreate,
    service: StockTakingService = Depends(get_stock_taking_service),
    current_user: User = Depends(get_current_admin)
):
    """Request a stock taking at a location and assign workers to it"""
    worker_ids = list(dict.fromkeys(data.assigned_worker_ids))
    active_ids = await UserService(service.db).get_active_user_ids(worker_ids)
    unknown = [worker_id for worker_id in worker_ids if worker_id not in active_ids]
    if unknown:
        raise ValidationError(f"Unknown or inactive workers: {unknown}")

    stock_taking = await service.create_stock_taking(
        data.location_id,
        current_user.id,
        worker_ids,
        data.notes
    )
    return to_detail(stock_taking)

@router.get("/", response_model=List[StockTakingSummary])
async def get_recent_stock_takings(
    service: StockTakingService = Depends(get_stock_taking_service),
    current_user: User = Depends(get_current_user)
):
    return await service.get_recent_stock_takings()

@router.get("/mine", response_model=List[StockTakingSummary])
async def get_my_stock_takings(
    service: StockTakingService = Depends(get_stock_taking_service),
    current_user: User = Depends(get_current_user)
):
    """Open stock takings assigned to the current user"""
    return await service.get_worker_stock_takings(current_user.id)

@router.get("/alerts", response_model=List[DiscrepancyAlert])
async def get_discrepancy_alerts(
    service: StockTakingService = Depends(get_stock_taking_service),
    current_user: User = Depends(get_current_admin)
):
    return await service.get_discrepancy_alerts()

@router.get("/{stock_taking_id}", response_model=StockTakingDetail)
async def get_stock_taking(
    stock_taking_id: int,
    service: StockTakingService = Depends(get_stock_taking_service),
    current_user: User = Depends(get_current_user)
):
    """Get stock taking by ID with all of its items"""
    detail = await service.get_stock_taking_detail(stock_taking_id)
    if not detail:
        raise HTTPException(status_code=404, detail="Stock taking not found")
    return detail

@router.get("/{stock_taking_id}/progress", response_model=StockTakingProgress)
async def get_stock_taking_progress(
    stock_taking_id: int,
    service: StockTakingService = Depends(get_stock_taking_service),
    current_user: User = Depends(get_current_user)
):
    progress = await service.get_progress(stock_taking_id)
    if not progress:
        raise HTTPException(status_code=404, detail="Stock taking not found")
    return progress

@router.post("/{stock_taking_id}/start", response_model=StockTakingDetail)
async def start_stock_taking(
    stock_taking_id: int,
    service: StockTakingService = Depends(get_stock_taking_service),
    current_user: User = Depends(get_current_user)
):
    """Start counting; only an assigned worker can start a requested stock taking"""
    result = await service.start_stock_taking(stock_taking_id, current_user.id)
    _raise_for_rejection(result)
    return await service.get_stock_taking_detail(stock_taking_id)

@router.post("/items/{item_id}/count", response_model=StockTakingItemRead)
async def count_item(
    item_id: int,
    data: StockTakingItemCount,
    service: StockTakingService = Depends(get_stock_taking_service),
    current_user: User = Depends(get_current_user)
):
    """Record the counted quantity of one item; only assigned workers can count"""
    item = await service.get_item(item_id)
    if not item:
        raise NotFoundError("Stock taking item not found")
    if not await service.is_user_assigned(item.stock_taking_id, current_user.id):
        raise ForbiddenError("You are not assigned to this stock taking")

    success = await service.update_item_count(
        item_id,
        data.counted_quantity,
        current_user.id,
        data.notes
    )
    if not success:
        raise HTTPException(status_code=400, detail="Failed to update item count")

    item = await service.get_item(item_id)
    return to_item_read(item)

@router.post("/{stock_taking_id}/complete", response_model=StockTakingDetail)
async def complete_stock_taking(
    stock_taking_id: int,
    service: StockTakingService = Depends(get_stock_taking_service),
    current_user: User = Depends(get_current_user)
):
    """Finish counting and notify the requester"""
    if not await service.is_user_assigned(stock_taking_id, current_user.id):
        if not await service.get_stock_taking(stock_taking_id):
            raise NotFoundError("Stock taking not found")
        raise ForbiddenError("You are not assigned to this stock taking")

    result = await service.complete_stock_taking(stock_taking_id, current_user.id)
    _raise_for_rejection(result)
    return await service.get_stock_taking_detail(stock_taking_id)

@router.post("/{stock_taking_id}/accept", response_model=dict)
async def accept_stock_taking_counts(
    stock_taking_id: int,
    service: StockTakingService = Depends(get_stock_taking_service),
    current_user: User = Depends(get_current_admin)
):
    """Overwrite stock levels with the counted quantities"""
    success = await service.accept_counts(stock_taking_id, current_user.id)
    if not success:
        raise InvalidTransitionError("Only completed stock takings can be accepted")

    logger.info(f"User {current_user.id} accepted counts of stock taking {stock_taking_id}")
    return {"message": "Counts accepted and stock levels updated"}
