"""
Order models for PostgreSQL
"""
from sqlalchemy import Column, String, Text, DateTime, Integer, Numeric
from sqlalchemy.sql import func
from core.database import Base
from utils.pricing import money_out

class Order(Base):
    __tablename__ = "orders"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(128), index=True, nullable=False)

    subtotal_amount = Column(Numeric(12, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    discount_code = Column(String(64), nullable=True)

    status = Column(String(32), nullable=False, default="completed")
    shipping_address = Column(Text, nullable=True)

    # Contact captured from the checkout form
    customer_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "subtotalAmount": money_out(self.subtotal_amount),
            "discountAmount": money_out(self.discount_amount),
            "totalAmount": money_out(self.total_amount),
            "discountCode": self.discount_code,
            "status": self.status,
            "shippingAddress": self.shipping_address,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(64), primary_key=True)
    order_id = Column(String(64), index=True, nullable=False)
    product_id = Column(String(64), index=True, nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)  # unit price at time of purchase

    def to_dict(self):
        return {
            "id": self.id,
            "orderId": self.order_id,
            "productId": self.product_id,
            "quantity": int(self.quantity or 0),
            "price": money_out(self.price),
        }
