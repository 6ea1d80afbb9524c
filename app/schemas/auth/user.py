from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr
from app.models.shared.enums import UserRoleType

class UserResponse(BaseModel):
    id: int
    email: EmailStr
    full_name: str
    role: UserRoleType
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
