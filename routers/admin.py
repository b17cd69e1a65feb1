from datetime import datetime, time, timezone
from typing import Literal, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.auth import SessionUser, require_admin
from core.config import logger, LOW_STOCK_THRESHOLD, PRODUCT_CONDITIONS
from core.database import get_db
from core.query import list_rows, get_row, patch_row
from models.discounts import DiscountCode
from models.product import Product
from utils.discount_rules import normalize_code
from utils.ids import new_id
from utils.pricing import inventory_stats, to_money, MAX_AMOUNT
from utils.rate_limit import check_admin_rate_limit

router = APIRouter(prefix="/api/admin", tags=["admin"])


# --- Models ---

class ProductPayload(BaseModel):
    name: str = ""
    brand: str = ""
    description: str = ""
    price: Optional[float] = Field(None, le=MAX_AMOUNT, allow_inf_nan=False)
    stockQuantity: Optional[int] = None
    category: str = ""
    imageUrl: str = ""
    sku: str = ""
    condition: str = "new"
    weight: Optional[float] = Field(None, le=MAX_AMOUNT, allow_inf_nan=False)
    dimensions: str = ""
    publishedDate: Optional[str] = None


class DiscountCodePayload(BaseModel):
    code: str = ""
    description: str = ""
    discountType: Literal["percentage", "fixed"] = "percentage"
    discountValue: Optional[float] = Field(None, le=MAX_AMOUNT, allow_inf_nan=False)
    minimumOrderAmount: Optional[float] = Field(None, le=MAX_AMOUNT, allow_inf_nan=False)
    maxUses: Optional[int] = None
    expiresAt: Optional[str] = None  # YYYY-MM-DD (end of day) or full ISO datetime
    isActive: bool = True


# --- Helpers ---

def _error(code: str, message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": code, "message": message}, status_code=status_code)


def _throttled(user: SessionUser) -> Optional[JSONResponse]:
    allowed, msg = check_admin_rate_limit(user.id)
    if not allowed:
        return _error("rate_limited", msg, 429)
    return None


def parse_expiry(value: Optional[str]) -> Optional[datetime]:
    """A bare date expires at 23:59:59 that day (UTC)."""
    raw = (value or "").strip()
    if not raw:
        return None
    if len(raw) == 10:
        d = datetime.strptime(raw, "%Y-%m-%d").date()
        return datetime.combine(d, time(23, 59, 59), tzinfo=timezone.utc)
    dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _product_fields(body: ProductPayload, owner_uid: str) -> dict:
    return {
        "name": body.name.strip(),
        "brand": body.brand,
        "description": body.description,
        "price": to_money(body.price),
        "stock_quantity": int(body.stockQuantity or 0),
        "category": body.category,
        "image_url": body.imageUrl,
        "sku": body.sku,
        "condition": body.condition,
        "weight": body.weight or None,
        "dimensions": body.dimensions,
        "published_date": body.publishedDate or None,
        "user_id": owner_uid,
    }


def _discount_fields(body: DiscountCodePayload) -> dict:
    return {
        "code": normalize_code(body.code),
        "description": body.description,
        "discount_type": body.discountType,
        "discount_value": to_money(body.discountValue),
        "minimum_order_amount": to_money(body.minimumOrderAmount or 0),
        "max_uses": int(body.maxUses) if body.maxUses else None,
        "expires_at": parse_expiry(body.expiresAt),
        "is_active": bool(body.isActive),
    }


def _validate_product(body: ProductPayload) -> Optional[JSONResponse]:
    if not body.name.strip() or body.price is None:
        return _error("missing_fields", "Please fill in all required fields.", 400)
    if body.price < 0 or (body.stockQuantity or 0) < 0:
        return _error("invalid_fields", "Price and stock cannot be negative.", 400)
    if body.condition not in PRODUCT_CONDITIONS:
        return _error("invalid_fields", f"Condition must be one of: {', '.join(PRODUCT_CONDITIONS)}.", 400)
    return None


def _validate_discount(body: DiscountCodePayload) -> Optional[JSONResponse]:
    if not normalize_code(body.code) or body.discountValue is None:
        return _error("missing_fields", "Please fill in all required fields.", 400)
    if body.discountValue < 0 or (body.minimumOrderAmount or 0) < 0:
        return _error("invalid_fields", "Discount values cannot be negative.", 400)
    try:
        parse_expiry(body.expiresAt)
    except ValueError:
        return _error("invalid_fields", "Invalid expiry date.", 400)
    return None


def _owned_product(db: Session, product_id: str, user: SessionUser) -> Optional[Product]:
    product = get_row(db, Product, product_id)
    if not product or product.user_id != user.id:
        return None
    return product


# --- Products (seller scoped) ---

@router.get("/products")
async def admin_list_products(user: SessionUser = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        rows = list_rows(db, Product, where={"user_id": user.id}, order_by={"created_at": "desc"})
    except Exception as ex:
        logger.exception(f"[admin.products.list] uid={user.id}: {ex}")
        return _error("server_error", "Failed to load products. Please try again.", 500)
    return {
        "products": [p.to_dict() for p in rows],
        "stats": inventory_stats(rows, LOW_STOCK_THRESHOLD),
    }


@router.post("/products")
async def admin_create_product(body: ProductPayload, user: SessionUser = Depends(require_admin), db: Session = Depends(get_db)):
    bad = _throttled(user) or _validate_product(body)
    if bad:
        return bad
    try:
        product = Product(id=new_id("product"), **_product_fields(body, user.id))
        db.add(product)
        db.commit()
        db.refresh(product)
    except Exception as ex:
        db.rollback()
        logger.exception(f"[admin.products.create] uid={user.id}: {ex}")
        return _error("server_error", "Failed to save product. Please try again.", 500)
    logger.info(f"[admin.products.create] uid={user.id} product={product.id}")
    return {"ok": True, "product": product.to_dict(), "message": "Product added successfully."}


@router.put("/products/{product_id}")
async def admin_update_product(product_id: str, body: ProductPayload, user: SessionUser = Depends(require_admin), db: Session = Depends(get_db)):
    bad = _throttled(user) or _validate_product(body)
    if bad:
        return bad
    product = _owned_product(db, product_id, user)
    if not product:
        return _error("not_found", "Product not found.", 404)
    try:
        patch_row(product, _product_fields(body, user.id))
        db.commit()
        db.refresh(product)
    except Exception as ex:
        db.rollback()
        logger.exception(f"[admin.products.update] uid={user.id} product={product_id}: {ex}")
        return _error("server_error", "Failed to save product. Please try again.", 500)
    return {"ok": True, "product": product.to_dict(), "message": "Product updated successfully."}


@router.delete("/products/{product_id}")
async def admin_delete_product(product_id: str, user: SessionUser = Depends(require_admin), db: Session = Depends(get_db)):
    bad = _throttled(user)
    if bad:
        return bad
    product = _owned_product(db, product_id, user)
    if not product:
        return _error("not_found", "Product not found.", 404)
    try:
        db.delete(product)
        db.commit()
    except Exception as ex:
        db.rollback()
        logger.exception(f"[admin.products.delete] uid={user.id} product={product_id}: {ex}")
        return _error("server_error", "Failed to delete product. Please try again.", 500)
    logger.info(f"[admin.products.delete] uid={user.id} product={product_id}")
    return {"ok": True, "message": "Product deleted successfully."}


# --- Discount codes (global) ---

@router.get("/discount-codes")
async def admin_list_discount_codes(user: SessionUser = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        rows = list_rows(db, DiscountCode, order_by={"created_at": "desc"})
    except Exception as ex:
        logger.exception(f"[admin.discounts.list] {ex}")
        return _error("server_error", "Failed to load discount codes. Please try again.", 500)
    return {"discountCodes": [d.to_dict() for d in rows]}


def _code_taken(db: Session, code: str, exclude_id: Optional[str] = None) -> bool:
    rows = list_rows(db, DiscountCode, where={"code": code}, limit=1)
    return bool(rows) and rows[0].id != exclude_id


@router.post("/discount-codes")
async def admin_create_discount_code(body: DiscountCodePayload, user: SessionUser = Depends(require_admin), db: Session = Depends(get_db)):
    bad = _throttled(user) or _validate_discount(body)
    if bad:
        return bad
    fields = _discount_fields(body)
    if _code_taken(db, fields["code"]):
        return _error("duplicate_code", f"Discount code {fields['code']} already exists.", 409)
    try:
        discount = DiscountCode(id=new_id("disc"), current_uses=0, created_by=user.id, **fields)
        db.add(discount)
        db.commit()
        db.refresh(discount)
    except IntegrityError:
        db.rollback()
        return _error("duplicate_code", f"Discount code {fields['code']} already exists.", 409)
    except Exception as ex:
        db.rollback()
        logger.exception(f"[admin.discounts.create] uid={user.id}: {ex}")
        return _error("server_error", "Failed to save discount code. Please try again.", 500)
    logger.info(f"[admin.discounts.create] uid={user.id} code={discount.code}")
    return {"ok": True, "discountCode": discount.to_dict(), "message": "Discount code created successfully."}


@router.put("/discount-codes/{discount_id}")
async def admin_update_discount_code(discount_id: str, body: DiscountCodePayload, user: SessionUser = Depends(require_admin), db: Session = Depends(get_db)):
    bad = _throttled(user) or _validate_discount(body)
    if bad:
        return bad
    discount = get_row(db, DiscountCode, discount_id)
    if not discount:
        return _error("not_found", "Discount code not found.", 404)
    fields = _discount_fields(body)
    if _code_taken(db, fields["code"], exclude_id=discount.id):
        return _error("duplicate_code", f"Discount code {fields['code']} already exists.", 409)
    try:
        patch_row(discount, fields)
        db.commit()
        db.refresh(discount)
    except Exception as ex:
        db.rollback()
        logger.exception(f"[admin.discounts.update] uid={user.id} id={discount_id}: {ex}")
        return _error("server_error", "Failed to save discount code. Please try again.", 500)
    return {"ok": True, "discountCode": discount.to_dict(), "message": "Discount code updated successfully."}


@router.delete("/discount-codes/{discount_id}")
async def admin_delete_discount_code(discount_id: str, user: SessionUser = Depends(require_admin), db: Session = Depends(get_db)):
    bad = _throttled(user)
    if bad:
        return bad
    discount = get_row(db, DiscountCode, discount_id)
    if not discount:
        return _error("not_found", "Discount code not found.", 404)
    try:
        db.delete(discount)
        db.commit()
    except Exception as ex:
        db.rollback()
        logger.exception(f"[admin.discounts.delete] uid={user.id} id={discount_id}: {ex}")
        return _error("server_error", "Failed to delete discount code. Please try again.", 500)
    return {"ok": True, "message": "Discount code deleted successfully."}


@router.post("/discount-codes/{discount_id}/toggle")
async def admin_toggle_discount_code(discount_id: str, user: SessionUser = Depends(require_admin), db: Session = Depends(get_db)):
    bad = _throttled(user)
    if bad:
        return bad
    discount = get_row(db, DiscountCode, discount_id)
    if not discount:
        return _error("not_found", "Discount code not found.", 404)
    try:
        discount.is_active = not bool(discount.is_active)
        db.commit()
    except Exception as ex:
        db.rollback()
        logger.exception(f"[admin.discounts.toggle] uid={user.id} id={discount_id}: {ex}")
        return _error("server_error", "Failed to update discount status. Please try again.", 500)
    state = "activated" if discount.is_active else "deactivated"
    return {"ok": True, "isActive": bool(discount.is_active), "message": f"Discount code {state} successfully."}
