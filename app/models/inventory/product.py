from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

class Product(BaseModel):
    __tablename__ = 'products'

    sku = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=False)
    description = Column(Text)

    # Relationships
    stock_levels = relationship("StockLevel", back_populates="product", cascade="all, delete-orphan")
    stock_taking_items = relationship("StockTakingItem", back_populates="product")
