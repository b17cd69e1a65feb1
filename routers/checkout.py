"""
Checkout: turns the caller's cart into an order.

Everything from stock re-validation to cart clearing runs in one database
transaction. Product and discount rows are read FOR UPDATE (where the dialect
supports it) so concurrent checkouts cannot both pass validation on the same
stock or the last use of a code.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from core.auth import SessionUser, get_current_user
from core.config import logger, COMMISSION_RATE, DEFAULT_COUNTRY
from core.database import get_db
from core.query import get_row
from models.discounts import DiscountCodeUse
from models.orders import Order, OrderItem
from models.product import Product
from models.seller_earnings import SellerEarning
from routers.cart import load_cart
from routers.discounts import resolve_discount
from utils.discount_rules import DiscountRejected
from utils.ids import new_id
from utils.pricing import cart_subtotal, order_total, commission_split, money_out, to_money

router = APIRouter(prefix="/api/checkout", tags=["checkout"])


class CheckoutPayload(BaseModel):
    firstName: str = ""
    lastName: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zipCode: str = ""
    country: str = DEFAULT_COUNTRY
    # Card fields are accepted from the form but never stored
    cardNumber: Optional[str] = None
    expiryDate: Optional[str] = None
    cvv: Optional[str] = None
    cardName: Optional[str] = None
    discountCode: Optional[str] = None


class StockValidationFailed(Exception):
    def __init__(self, messages):
        super().__init__(" ".join(messages))
        self.messages = messages


def format_shipping_address(p: CheckoutPayload) -> str:
    return f"{p.address}, {p.city}, {p.state} {p.zipCode}, {p.country}"


def _validate_stock(db: Session, lines):
    """Re-read every product under lock; returns {product_id: Product}."""
    requested = {}
    names = {}
    for item, product in lines:
        requested[item.product_id] = requested.get(item.product_id, 0) + int(item.quantity)
        names.setdefault(item.product_id, product.name)

    errors = []
    fresh = {}
    for product_id, quantity in requested.items():
        current = get_row(db, Product, product_id, for_update=True)
        if current is None:
            errors.append(f'Product "{names[product_id]}" is no longer available')
            continue
        stock = int(current.stock_quantity or 0)
        if stock < quantity:
            errors.append(
                f'Insufficient stock for "{current.name}". Only {stock} available, but {quantity} requested.'
            )
        fresh[current.id] = current
    if errors:
        raise StockValidationFailed(errors)
    return fresh


def place_order(db: Session, user: SessionUser, payload: CheckoutPayload, lines) -> dict:
    products = _validate_stock(db, lines)
    subtotal = cart_subtotal((products[i.product_id].price, i.quantity) for i, _ in lines)

    discount = None
    discount_value = to_money(0)
    if payload.discountCode:
        discount, discount_value = resolve_discount(db, user.id, payload.discountCode, subtotal, for_update=True)
    total = order_total(subtotal, discount_value)

    order_id = new_id("order")
    db.add(Order(
        id=order_id,
        user_id=user.id,
        subtotal_amount=subtotal,
        discount_amount=discount_value,
        total_amount=total,
        discount_code=discount.code if discount else None,
        status="completed",
        shipping_address=format_shipping_address(payload),
        customer_name=f"{payload.firstName} {payload.lastName}".strip(),
        customer_email=payload.email,
        customer_phone=payload.phone or None,
    ))

    for item, _ in lines:
        product = products[item.product_id]
        qty = int(item.quantity)
        db.add(OrderItem(
            id=new_id("orderitem"),
            order_id=order_id,
            product_id=product.id,
            quantity=qty,
            price=product.price,
        ))
        product.stock_quantity = max(0, int(product.stock_quantity or 0) - qty)

        split = commission_split(product.price, qty, COMMISSION_RATE)
        db.add(SellerEarning(
            id=new_id("earning"),
            seller_id=product.user_id,
            order_id=order_id,
            product_id=product.id,
            quantity=qty,
            unit_price=product.price,
            status="available",
            **split,
        ))

    if discount is not None:
        db.add(DiscountCodeUse(
            id=new_id("usage"),
            discount_code_id=discount.id,
            user_id=user.id,
            order_id=order_id,
            discount_amount=discount_value,
        ))
        discount.current_uses = int(discount.current_uses or 0) + 1

    for item, _ in lines:
        db.delete(item)

    db.commit()
    return {
        "ok": True,
        "orderId": order_id,
        "subtotal": money_out(subtotal),
        "discount": money_out(discount_value),
        "discountCode": discount.code if discount else None,
        "total": money_out(total),
        "itemCount": sum(int(i.quantity) for i, _ in lines),
        "message": "Your order has been successfully placed.",
    }


@router.post("")
async def checkout(
    payload: CheckoutPayload,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not payload.firstName or not payload.lastName or not payload.email or not payload.address:
        return JSONResponse({"error": "missing_fields", "message": "Please fill in all required fields."}, status_code=400)

    lines = load_cart(db, user.id)
    if not lines:
        return JSONResponse({"error": "empty_cart", "message": "Your cart is empty.", "redirect": "/cart"}, status_code=400)

    try:
        result = place_order(db, user, payload, lines)
    except StockValidationFailed as ex:
        db.rollback()
        logger.info(f"[checkout] stock validation failed uid={user.id}: {ex}")
        return JSONResponse({"error": "stock_validation_failed", "message": str(ex), "details": ex.messages}, status_code=409)
    except DiscountRejected as rej:
        db.rollback()
        logger.info(f"[checkout] discount rejected uid={user.id} reason={rej.reason}")
        return JSONResponse(rej.to_dict(), status_code=rej.status_code)
    except Exception as ex:
        db.rollback()
        logger.exception(f"[checkout] error uid={user.id}: {ex}")
        return JSONResponse({"error": "server_error", "message": "Failed to process order. Please try again."}, status_code=500)

    logger.info(f"[checkout] placed uid={user.id} order={result['orderId']} total={result['total']}")
    return result
