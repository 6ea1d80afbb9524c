from sqlalchemy import Column, Integer, DateTime, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from app.db.base import BaseModel
from app.models.shared.enums import StockTakingStatus

class StockTaking(BaseModel):
    __tablename__ = 'stock_takings'
    
    location_id = Column(Integer, ForeignKey('locations.id', ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(SQLEnum(StockTakingStatus), nullable=False, default=StockTakingStatus.REQUESTED, index=True)
    requested_by_id = Column(Integer, ForeignKey('users.id', ondelete="RESTRICT"), nullable=False)
    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    notes = Column(Text)
    
    # Relationships
    location = relationship("Location", back_populates="stock_takings")
    requested_by = relationship("User", back_populates="requested_stock_takings", foreign_keys=[requested_by_id])
    assignments = relationship("StockTakingAssignment", back_populates="stock_taking", cascade="all, delete-orphan")
    items = relationship("StockTakingItem", back_populates="stock_taking", cascade="all, delete-orphan")
