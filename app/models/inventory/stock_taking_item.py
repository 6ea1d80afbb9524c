from decimal import Decimal
from typing import Optional
from sqlalchemy import Column, Integer, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel
from app.core.config import settings
from app.utils.variance import calculate_variance, calculate_variance_percent

class StockTakingItem(BaseModel):
    __tablename__ = 'stock_taking_items'
    
    stock_taking_id = Column(Integer, ForeignKey('stock_takings.id', ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id', ondelete="RESTRICT"), nullable=False)
    expected_quantity = Column(Integer, nullable=False)  # Snapshot of stock at creation
    counted_quantity = Column(Integer)
    counted_at = Column(DateTime(timezone=True))
    counted_by_id = Column(Integer, ForeignKey('users.id', ondelete="SET NULL"))
    notes = Column(Text)

    __table_args__ = (
        UniqueConstraint("stock_taking_id", "product_id", name="uq_stock_taking_item_product"),
    )
    
    # Relationships
    stock_taking = relationship("StockTaking", back_populates="items")
    product = relationship("Product", back_populates="stock_taking_items")
    counted_by = relationship("User", foreign_keys=[counted_by_id])

    @property
    def is_counted(self) -> bool:
        return self.counted_quantity is not None

    @property
    def is_discrepancy(self) -> bool:
        return self.is_counted and self.counted_quantity != self.expected_quantity

    @property
    def variance(self) -> Optional[int]:
        return calculate_variance(self.expected_quantity, self.counted_quantity)

    @property
    def variance_percent(self) -> Optional[Decimal]:
        return calculate_variance_percent(
            self.expected_quantity,
            self.counted_quantity,
            settings.ITEM_VARIANCE_PRECISION
        )
