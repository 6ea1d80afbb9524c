from sqlalchemy import Column, String, Boolean, Enum as SQLEnum
from sqlalchemy.orm import relationship
from app.db.base import BaseModel
from app.models.shared.enums import UserRoleType

class User(BaseModel):
    __tablename__ = "users"

    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRoleType), nullable=False, default=UserRoleType.WORKER)
    is_active = Column(Boolean, default=True)

    # Relationships
    requested_stock_takings = relationship(
        "StockTaking",
        back_populates="requested_by",
        foreign_keys="StockTaking.requested_by_id"
    )
    stock_taking_assignments = relationship("StockTakingAssignment", back_populates="user")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRoleType.ADMIN

    def __repr__(self):
        return f"<User {self.email}>"
