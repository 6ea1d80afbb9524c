from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_async_session
from app.auth.jwt_handler import decode_access_token
from app.models.auth.user import User
from app.services.auth.user_service import UserService
from app.services.notification.notification_hub import NotificationHub, get_notification_hub
from app.services.notification.notification_service import NotificationService
from app.services.inventory.stock_taking_service import StockTakingService
import logging

security = HTTPBearer()
logger = logging.getLogger(__name__)

_credentials_exception = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid authentication credentials",
    headers={"WWW-Authenticate": "Bearer"},
)

async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session: AsyncSession = Depends(get_async_session)
) -> User:
    """Get current authenticated user"""
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _credentials_exception

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise _credentials_exception

    user_service = UserService(session)
    user = await user_service.get_user(user_id)

    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Add request info to context
    request.state.current_user = user
    return user

async def get_current_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """Get current user, requiring the admin role"""
    if not current_user.is_admin:
        logger.info(f"User {current_user.id} denied admin-only access")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )
    return current_user

def get_notification_service(
    db: AsyncSession = Depends(get_async_session),
    hub: NotificationHub = Depends(get_notification_hub)
) -> NotificationService:
    return NotificationService(db, hub)

def get_stock_taking_service(
    db: AsyncSession = Depends(get_async_session),
    notification_service: NotificationService = Depends(get_notification_service)
) -> StockTakingService:
    return StockTakingService(db, notification_service)
