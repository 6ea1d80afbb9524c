from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

class StockLevel(BaseModel):
    __tablename__ = 'stock_levels'
    
    product_id = Column(Integer, ForeignKey('products.id', ondelete="CASCADE"), nullable=False)
    location_id = Column(Integer, ForeignKey('locations.id', ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    
    # Composite unique constraint
    __table_args__ = (
        UniqueConstraint("product_id", "location_id", name="uq_stock_level_product_location"),
    )

    # Relationships
    product = relationship("Product", back_populates="stock_levels")
    location = relationship("Location", back_populates="stock_levels")
