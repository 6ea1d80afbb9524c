from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

class Location(BaseModel):
    __tablename__ = 'locations'
    
    code = Column(String(20), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    
    # Relationships
    stock_levels = relationship("StockLevel", back_populates="location", cascade="all, delete-orphan")
    stock_takings = relationship("StockTaking", back_populates="location")
