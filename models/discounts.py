from sqlalchemy import Column, String, Text, DateTime, Integer, Numeric, Boolean
from sqlalchemy.sql import func
from core.database import Base
from utils.pricing import money_out

class DiscountCode(Base):
    __tablename__ = "discount_codes"

    id = Column(String(64), primary_key=True)
    code = Column(String(64), unique=True, index=True, nullable=False)  # stored upper-case
    description = Column(Text, nullable=True)

    discount_type = Column(String(16), nullable=False, default="percentage")  # percentage | fixed
    discount_value = Column(Numeric(12, 2), nullable=False)
    minimum_order_amount = Column(Numeric(12, 2), nullable=False, default=0)

    max_uses = Column(Integer, nullable=True)  # null = unlimited
    current_uses = Column(Integer, nullable=False, default=0)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_by = Column(String(128), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description or "",
            "discountType": self.discount_type,
            "discountValue": money_out(self.discount_value),
            "minimumOrderAmount": money_out(self.minimum_order_amount),
            "maxUses": self.max_uses,
            "currentUses": int(self.current_uses or 0),
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
            "isActive": bool(self.is_active),
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class DiscountCodeUse(Base):
    """One redemption of a code by a user on an order."""
    __tablename__ = "discount_code_uses"

    id = Column(String(64), primary_key=True)
    discount_code_id = Column(String(64), index=True, nullable=False)
    user_id = Column(String(128), index=True, nullable=False)
    order_id = Column(String(64), index=True, nullable=True)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
