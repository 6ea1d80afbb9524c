from enum import Enum

# Enums
class UserRoleType(str, Enum):
    ADMIN = "ADMIN"
    WORKER = "WORKER"

class StockTakingStatus(str, Enum):
    REQUESTED = "REQUESTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"

class NotificationType(str, Enum):
    STOCK_TAKING_REQUESTED = "STOCK_TAKING_REQUESTED"
    STOCK_TAKING_STARTED = "STOCK_TAKING_STARTED"
    STOCK_TAKING_COMPLETED = "STOCK_TAKING_COMPLETED"
    GENERAL = "GENERAL"
