import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.auth.user import User
from app.core.security import verify_password, create_access_token
from app.core.config import settings
from app.schemas.auth.login import LoginResponse
from app.schemas.auth.user import UserResponse
from app.services.auth.user_service import UserService

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_service = UserService(session)
    
    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Authenticate user with email and password"""
        user = await self.user_service.get_user_by_email(email)
        if not user or not user.is_active:
            logger.info(f"Failed login for {email}: unknown or inactive user")
            return None

        if not verify_password(password, user.hashed_password):
            logger.info(f"Failed login for {email}: wrong password")
            return None

        return user

    def create_login_response(self, user: User) -> LoginResponse:
        access_token = create_access_token({"sub": str(user.id), "role": user.role.value})
        logger.info(f"User {user.id} logged in")
        return LoginResponse(
            user=UserResponse.model_validate(user),
            access_token=access_token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        )
