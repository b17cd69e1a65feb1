from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from core.auth import SessionUser, get_current_user
from core.config import logger, CURRENCY_SYMBOL
from core.database import get_db
from core.query import list_rows
from models.discounts import DiscountCode, DiscountCodeUse
from utils.discount_rules import DiscountRejected, check_eligibility, already_used_error, normalize_code
from utils.pricing import money_out, MAX_AMOUNT
from utils.rate_limit import check_discount_rate_limit

router = APIRouter(prefix="/api/discounts", tags=["discounts"])


class ApplyDiscountPayload(BaseModel):
    code: str = ""
    subtotal: float = Field(0, ge=0, le=MAX_AMOUNT, allow_inf_nan=False)


def resolve_discount(db: Session, user_id: str, code: Optional[str], subtotal, for_update: bool = False):
    """
    Look up an active code and run every eligibility check for this user.
    Returns (DiscountCode, amount) or raises DiscountRejected.
    """
    code = normalize_code(code)
    if not code:
        raise DiscountRejected("missing_code", "Please enter a discount code.")
    rows = list_rows(db, DiscountCode, where={"code": code, "is_active": True}, limit=1, for_update=for_update)
    discount = rows[0] if rows else None
    amount = check_eligibility(discount, subtotal)
    used = list_rows(db, DiscountCodeUse, where={"discount_code_id": discount.id, "user_id": user_id}, limit=1)
    if used:
        raise already_used_error()
    return discount, amount


@router.post("/apply")
async def apply_discount(
    payload: ApplyDiscountPayload,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    allowed, msg = check_discount_rate_limit(user.id)
    if not allowed:
        return JSONResponse({"error": "rate_limited", "message": msg}, status_code=429)
    try:
        discount, amount = resolve_discount(db, user.id, payload.code, payload.subtotal)
    except DiscountRejected as rej:
        logger.info(f"[discounts.apply] rejected uid={user.id} code={normalize_code(payload.code)} reason={rej.reason}")
        return JSONResponse(rej.to_dict(), status_code=rej.status_code)
    except Exception as ex:
        logger.exception(f"[discounts.apply] error uid={user.id}: {ex}")
        return JSONResponse({"error": "server_error", "message": "Failed to apply discount code. Please try again."}, status_code=500)

    logger.info(f"[discounts.apply] ok uid={user.id} code={discount.code} amount={amount}")
    return {
        "code": discount.code,
        "amount": money_out(amount),
        "description": discount.description or "",
        "message": f"You saved {CURRENCY_SYMBOL}{amount:.2f} with code {discount.code}.",
    }
