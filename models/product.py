"""
Catalog product listed by a seller
"""
from sqlalchemy import Column, String, Text, DateTime, Integer, Numeric, Float
from sqlalchemy.sql import func
from core.database import Base
from utils.pricing import money_out

class Product(Base):
    __tablename__ = "products"

    id = Column(String(64), primary_key=True)

    # Owning seller (Firebase UID)
    user_id = Column(String(128), index=True, nullable=False)

    name = Column(String(255), nullable=False)
    brand = Column(String(255), nullable=True)  # author for books
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    stock_quantity = Column(Integer, nullable=False, default=0)
    category = Column(String(64), index=True, nullable=True)
    condition = Column(String(32), index=True, nullable=False, default="new")
    image_url = Column(Text, nullable=True)
    sku = Column(String(64), nullable=True)  # isbn for books
    weight = Column(Float, nullable=True)
    dimensions = Column(String(128), nullable=True)
    published_date = Column(String(32), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def to_dict(self):
        """Convert to dict for API responses"""
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand or "",
            "description": self.description or "",
            "price": money_out(self.price),
            "stockQuantity": int(self.stock_quantity or 0),
            "category": self.category or "",
            "imageUrl": self.image_url or "",
            "sku": self.sku or "",
            "condition": self.condition or "new",
            "weight": self.weight or 0,
            "dimensions": self.dimensions or "",
            "userId": self.user_id or "",
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def to_book_dict(self):
        """Same row in book vocabulary: title/author/isbn"""
        return {
            "id": self.id,
            "title": self.name,
            "author": self.brand or "",
            "description": self.description or "",
            "price": money_out(self.price),
            "stockQuantity": int(self.stock_quantity or 0),
            "category": self.category or "",
            "imageUrl": self.image_url or "",
            "isbn": self.sku or "",
            "publishedDate": self.published_date or "",
            "userId": self.user_id or "",
        }
