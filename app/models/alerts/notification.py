from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from app.db.base import BaseModel
from app.models.shared.enums import NotificationType

class Notification(BaseModel):
    __tablename__ = 'notifications'
    
    user_id = Column(Integer, ForeignKey('users.id', ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String(500))
    type = Column(SQLEnum(NotificationType), nullable=False, default=NotificationType.GENERAL)
    is_read = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_notifications_user_id_is_read", "user_id", "is_read"),
    )

    # Relationships
    user = relationship("User", back_populates="notifications")
