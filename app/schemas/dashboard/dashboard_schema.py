from pydantic import BaseModel, Field
from typing import List
from app.schemas.inventory.stock_taking import StockTakingSummary, DiscrepancyAlert

class AdminDashboardResponse(BaseModel):
    total_products: int
    total_locations: int
    pending_stock_takings: int
    in_progress_stock_takings: int
    completed_this_week: int
    total_discrepancies: int
    recent_stock_takings: List[StockTakingSummary] = Field(default_factory=list)
    discrepancy_alerts: List[DiscrepancyAlert] = Field(default_factory=list)

class WorkerDashboardResponse(BaseModel):
    assigned_tasks: int
    in_progress_tasks: int
    completed_this_week: int
    my_tasks: List[StockTakingSummary] = Field(default_factory=list)
