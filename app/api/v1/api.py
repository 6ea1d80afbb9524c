from fastapi import APIRouter
from app.api.v1.endpoints.auth import login
from app.api.v1.endpoints.dashboard import dashboard
from app.api.v1.endpoints.inventory import stock_takings
from app.api.v1.endpoints.notification import notifications

api_router = APIRouter()

# Authentication routes
api_router.include_router(login.router, prefix="/auth", tags=["Authentication"])

# Stock taking routes
api_router.include_router(stock_takings.router, prefix="/stock-taking", tags=["Stock Taking"])

# Notification routes
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])

# Dashboard routes
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
