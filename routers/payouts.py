from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from core.auth import SessionUser, get_current_user
from core.config import logger, PAYMENT_METHODS
from core.database import get_db
from core.query import list_rows, get_row
from models.payouts import PayoutRequest, PayoutItem
from models.product import Product
from models.seller_earnings import SellerEarning
from utils.ids import new_id
from utils.payouts import allocate_payout, available_balance, payout_stats, payment_details_for
from utils.pricing import to_money, money_out, valid_amount

router = APIRouter(prefix="/api/payouts", tags=["payouts"])


class PayoutRequestPayload(BaseModel):
    amount: Optional[float] = None
    paymentMethod: str = "bank_transfer"
    bankName: str = ""
    accountNumber: str = ""
    sortCode: str = ""
    accountHolderName: str = ""
    paypalEmail: str = ""
    notes: str = ""


def _earnings(db: Session, seller_id: str, newest_first: bool = True, for_update: bool = False):
    direction = "desc" if newest_first else "asc"
    return list_rows(
        db,
        SellerEarning,
        where={"seller_id": seller_id},
        order_by={"created_at": direction, "id": direction},
        for_update=for_update,
    )


def _requests(db: Session, seller_id: str):
    return list_rows(db, PayoutRequest, where={"seller_id": seller_id}, order_by={"requested_at": "desc"})


@router.get("/earnings")
async def list_earnings(user: SessionUser = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        rows = _earnings(db, user.id)
        out = []
        for e in rows:
            data = e.to_dict()
            product = get_row(db, Product, e.product_id)
            data["product"] = {"name": product.name, "imageUrl": product.image_url or ""} if product else None
            out.append(data)
    except Exception as ex:
        logger.exception(f"[payouts.earnings] uid={user.id}: {ex}")
        return JSONResponse({"error": "server_error", "message": "Failed to load earnings. Please try again."}, status_code=500)
    return {"earnings": out, "count": len(out)}


@router.get("/requests")
async def list_payout_requests(user: SessionUser = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        rows = _requests(db, user.id)
    except Exception as ex:
        logger.exception(f"[payouts.requests] uid={user.id}: {ex}")
        return JSONResponse({"error": "server_error", "message": "Failed to load payout requests. Please try again."}, status_code=500)
    return {"requests": [r.to_dict() for r in rows], "count": len(rows)}


@router.get("/stats")
async def get_payout_stats(user: SessionUser = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return payout_stats(_earnings(db, user.id), _requests(db, user.id))
    except Exception as ex:
        logger.exception(f"[payouts.stats] uid={user.id}: {ex}")
        return JSONResponse({"error": "server_error", "message": "Failed to load payout stats. Please try again."}, status_code=500)


@router.post("/requests")
async def request_payout(
    payload: PayoutRequestPayload,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not valid_amount(payload.amount):
        return JSONResponse({"error": "invalid_amount", "message": "Please enter a valid amount."}, status_code=400)
    amount = to_money(payload.amount)
    if payload.paymentMethod not in PAYMENT_METHODS:
        return JSONResponse({"error": "invalid_method", "message": "Unsupported payment method."}, status_code=400)

    try:
        earnings = _earnings(db, user.id, newest_first=False, for_update=True)
        if amount > available_balance(earnings):
            db.rollback()
            return JSONResponse({"error": "insufficient_balance", "message": "Insufficient available balance."}, status_code=400)

        request_id = new_id("payout")
        payout = PayoutRequest(
            id=request_id,
            seller_id=user.id,
            amount=amount,
            status="pending",
            payment_method=payload.paymentMethod,
            payment_details=payment_details_for(payload.paymentMethod, payload.model_dump()),
            notes=payload.notes or None,
        )
        db.add(payout)

        items = []
        for earning, alloc in allocate_payout(earnings, amount):
            item = PayoutItem(
                id=new_id("payoutitem"),
                payout_request_id=request_id,
                seller_earning_id=earning.id,
                amount=alloc,
            )
            db.add(item)
            items.append(item)
            earning.status = "pending_payout"

        db.commit()
        db.refresh(payout)
    except Exception as ex:
        db.rollback()
        logger.exception(f"[payouts.request] uid={user.id} amount={amount}: {ex}")
        return JSONResponse({"error": "server_error", "message": "Failed to create payout request. Please try again."}, status_code=500)

    logger.info(f"[payouts.request] uid={user.id} request={request_id} amount={amount} items={len(items)}")
    return {
        "ok": True,
        "request": payout.to_dict(),
        "items": [i.to_dict() for i in items],
        "allocated": money_out(sum((to_money(i.amount) for i in items), to_money(0))),
        "message": "Payout request submitted successfully. We will process it within 3-5 business days.",
    }
