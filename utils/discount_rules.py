"""Discount code eligibility"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from core.config import CURRENCY_SYMBOL
from utils.pricing import to_money, discount_amount


class DiscountRejected(Exception):
    def __init__(self, reason: str, message: str, status_code: int = 400):
        super().__init__(message)
        self.reason = reason
        self.message = message
        self.status_code = status_code

    def to_dict(self):
        return {"error": self.reason, "message": self.message}


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def _aware(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; stored values are UTC
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def check_eligibility(discount, subtotal, now: Optional[datetime] = None) -> Decimal:
    """
    Validate an active code row against the order subtotal and return the
    discount amount. Per-user reuse is checked by the caller, which owns the
    session.
    """
    if discount is None:
        raise DiscountRejected("invalid_code", "The discount code you entered is not valid or has expired.")
    now = now or datetime.now(timezone.utc)
    if discount.expires_at and _aware(discount.expires_at) < now:
        raise DiscountRejected("expired", "This discount code has expired.")
    if discount.max_uses and int(discount.current_uses or 0) >= int(discount.max_uses):
        raise DiscountRejected("limit_reached", "This discount code has reached its usage limit.")
    minimum = to_money(discount.minimum_order_amount)
    if to_money(subtotal) < minimum:
        raise DiscountRejected(
            "minimum_not_met",
            f"This discount requires a minimum order of {CURRENCY_SYMBOL}{minimum:.2f}.",
        )
    return discount_amount(discount.discount_type, discount.discount_value, subtotal)


def already_used_error() -> DiscountRejected:
    return DiscountRejected("already_used", "You have already used this discount code.")
