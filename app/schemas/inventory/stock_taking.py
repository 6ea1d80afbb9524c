from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from app.models.shared.enums import StockTakingStatus

class StockTakingCreate(BaseModel):
    location_id: int
    assigned_worker_ids: List[int] = Field(..., min_length=1)
    notes: Optional[str] = None

class StockTakingItemCount(BaseModel):
    counted_quantity: int = Field(..., ge=0)
    notes: Optional[str] = None

class StockTakingItemRead(BaseModel):
    id: int
    stock_taking_id: int
    product_id: int
    product_sku: str
    product_name: str
    product_category: str
    expected_quantity: int
    counted_quantity: Optional[int] = None
    counted_at: Optional[datetime] = None
    counted_by_id: Optional[int] = None
    counted_by_name: Optional[str] = None
    notes: Optional[str] = None
    is_counted: bool
    variance: Optional[int] = None
    variance_percent: Optional[Decimal] = None

class StockTakingSummary(BaseModel):
    id: int
    location_id: int
    location_name: str
    location_code: str
    status: StockTakingStatus
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    requested_by_name: str
    assigned_workers: List[str] = Field(default_factory=list)
    total_items: int
    counted_items: int
    discrepancy_count: int
    progress_percent: Decimal

class StockTakingDetail(StockTakingSummary):
    requested_by_id: int
    assigned_worker_ids: List[int] = Field(default_factory=list)
    notes: Optional[str] = None
    matched_items: int
    items: List[StockTakingItemRead] = Field(default_factory=list)

class StockTakingProgress(BaseModel):
    stock_taking_id: int
    total_items: int
    counted_items: int
    progress_percent: Decimal

class DiscrepancyAlert(BaseModel):
    stock_taking_id: int
    product_name: str
    product_sku: str
    location_name: str
    expected_quantity: int
    counted_quantity: int
    variance: int
    variance_percent: Decimal
