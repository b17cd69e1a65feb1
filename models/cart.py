from sqlalchemy import Column, String, DateTime, Integer
from sqlalchemy.sql import func
from core.database import Base

class CartItem(Base):
    """
    One row per (user, product) by convention; add-to-cart increments an
    existing row instead of inserting a second one.
    """
    __tablename__ = "cart_items"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(128), index=True, nullable=False)
    product_id = Column(String(64), index=True, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "productId": self.product_id,
            "quantity": int(self.quantity or 0),
        }
