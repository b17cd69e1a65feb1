from sqlalchemy import Column, String, DateTime, Integer, Numeric
from sqlalchemy.sql import func
from core.database import Base
from utils.pricing import money_out

class SellerEarning(Base):
    """
    Net revenue owed to a seller for one order line, after platform commission.
    Status moves available -> pending_payout -> paid_out.
    """
    __tablename__ = "seller_earnings"

    id = Column(String(64), primary_key=True)
    seller_id = Column(String(128), index=True, nullable=False)
    order_id = Column(String(64), index=True, nullable=False)
    product_id = Column(String(64), index=True, nullable=False)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_earnings = Column(Numeric(12, 2), nullable=False)
    commission_rate = Column(Numeric(5, 4), nullable=False)
    commission_amount = Column(Numeric(12, 2), nullable=False)
    net_earnings = Column(Numeric(12, 2), nullable=False)

    status = Column(String(32), index=True, nullable=False, default="available")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "sellerId": self.seller_id,
            "orderId": self.order_id,
            "productId": self.product_id,
            "quantity": int(self.quantity or 0),
            "unitPrice": money_out(self.unit_price),
            "totalEarnings": money_out(self.total_earnings),
            "commissionRate": float(self.commission_rate or 0),
            "commissionAmount": money_out(self.commission_amount),
            "netEarnings": money_out(self.net_earnings),
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
