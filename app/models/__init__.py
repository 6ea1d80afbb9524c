from app.models.auth.user import User
from app.models.organization.location import Location
from app.models.inventory.product import Product
from app.models.inventory.stock_level import StockLevel
from app.models.inventory.stock_taking import StockTaking
from app.models.inventory.stock_taking_assignment import StockTakingAssignment
from app.models.inventory.stock_taking_item import StockTakingItem
from app.models.alerts.notification import Notification

__all__ = [
    "User",
    "Location",
    "Product",
    "StockLevel",
    "StockTaking",
    "StockTakingAssignment",
    "StockTakingItem",
    "Notification",
]
