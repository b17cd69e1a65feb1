"""
Seller payout models for PostgreSQL
- payout_requests: a seller-initiated withdrawal, settled out-of-band
- payout_items: which earnings were allocated to a request, and how much
"""
from sqlalchemy import Column, String, Text, JSON, DateTime, Numeric
from sqlalchemy.sql import func
from core.database import Base
from utils.pricing import money_out

class PayoutRequest(Base):
    __tablename__ = "payout_requests"

    id = Column(String(64), primary_key=True)
    seller_id = Column(String(128), index=True, nullable=False)

    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(32), index=True, nullable=False, default="pending")  # pending | approved | completed | rejected

    payment_method = Column(String(32), nullable=False, default="bank_transfer")
    payment_details = Column(JSON, nullable=False, default={})
    notes = Column(Text, nullable=True)

    requested_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    processed_by = Column(String(128), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "sellerId": self.seller_id,
            "amount": money_out(self.amount),
            "status": self.status,
            "paymentMethod": self.payment_method,
            "paymentDetails": self.payment_details or {},
            "notes": self.notes,
            "requestedAt": self.requested_at.isoformat() if self.requested_at else None,
            "processedAt": self.processed_at.isoformat() if self.processed_at else None,
            "processedBy": self.processed_by,
        }


class PayoutItem(Base):
    __tablename__ = "payout_items"

    id = Column(String(64), primary_key=True)
    payout_request_id = Column(String(64), index=True, nullable=False)
    seller_earning_id = Column(String(64), index=True, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "payoutRequestId": self.payout_request_id,
            "sellerEarningId": self.seller_earning_id,
            "amount": money_out(self.amount),
        }
