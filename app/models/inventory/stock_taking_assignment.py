from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel, utcnow

class StockTakingAssignment(BaseModel):
    __tablename__ = 'stock_taking_assignments'
    
    stock_taking_id = Column(Integer, ForeignKey('stock_takings.id', ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id', ondelete="CASCADE"), nullable=False, index=True)
    assigned_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("stock_taking_id", "user_id", name="uq_stock_taking_assignment"),
    )
    
    # Relationships
    stock_taking = relationship("StockTaking", back_populates="assignments")
    user = relationship("User", back_populates="stock_taking_assignments")
