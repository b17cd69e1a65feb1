from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from core.auth import SessionUser, get_current_user
from core.config import logger, MAX_SELECTABLE_QUANTITY
from core.database import get_db
from core.query import list_rows, get_row
from models.cart import CartItem
from models.product import Product
from routers.discounts import resolve_discount
from utils.discount_rules import DiscountRejected
from utils.ids import new_id
from utils.pricing import cart_subtotal, order_total, money_out, line_total

router = APIRouter(prefix="/api/cart", tags=["cart"])


class AddToCartPayload(BaseModel):
    productId: str
    quantity: int = 1


class UpdateQuantityPayload(BaseModel):
    quantity: int


class CartSummaryPayload(BaseModel):
    discountCode: Optional[str] = None


def _error(code: str, message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": code, "message": message}, status_code=status_code)


def load_cart(db: Session, user_id: str) -> List[Tuple[CartItem, Product]]:
    """Caller's cart rows joined to their products; rows whose product is gone are dropped."""
    items = list_rows(db, CartItem, where={"user_id": user_id}, order_by={"created_at": "desc"})
    out = []
    for item in items:
        product = get_row(db, Product, item.product_id)
        if product is None:
            continue
        out.append((item, product))
    return out


def added_message(name: str, quantity: int) -> str:
    if quantity > 1:
        return f'{quantity} x "{name}" has been added to your cart.'
    return f'"{name}" has been added to your cart.'


def cart_line(item: CartItem, product: Product) -> dict:
    data = item.to_dict()
    data["product"] = {
        "id": product.id,
        "name": product.name,
        "brand": product.brand or "",
        "price": money_out(product.price),
        "imageUrl": product.image_url or "",
        "stockQuantity": int(product.stock_quantity or 0),
        "condition": product.condition or "new",
        "category": product.category or "",
    }
    data["lineTotal"] = money_out(line_total(product.price, item.quantity))
    data["exceedsStock"] = int(item.quantity) > int(product.stock_quantity or 0)
    return data


@router.get("")
async def get_cart(user: SessionUser = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        lines = load_cart(db, user.id)
    except Exception as ex:
        logger.exception(f"[cart.get] uid={user.id}: {ex}")
        return _error("server_error", "Failed to load cart items. Please try again.", 500)
    subtotal = cart_subtotal((p.price, i.quantity) for i, p in lines)
    return {
        "items": [cart_line(i, p) for i, p in lines],
        "itemCount": sum(int(i.quantity) for i, _ in lines),
        "subtotal": money_out(subtotal),
    }


@router.post("/items")
async def add_to_cart(
    payload: AddToCartPayload,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    quantity = int(payload.quantity)
    if quantity < 1:
        return _error("invalid_quantity", "Quantity must be at least 1.", 400)
    if quantity > MAX_SELECTABLE_QUANTITY:
        return _error("invalid_quantity", f"You can add at most {MAX_SELECTABLE_QUANTITY} at a time.", 400)
    product = get_row(db, Product, payload.productId)
    if not product:
        return _error("not_found", "Product not found.", 404)
    stock = int(product.stock_quantity or 0)
    if stock <= 0:
        return _error("out_of_stock", f'"{product.name}" is currently out of stock.', 409)
    if quantity > stock:
        return _error("insufficient_stock", f"Only {stock} items available.", 409)

    try:
        existing = list_rows(db, CartItem, where={"user_id": user.id, "product_id": product.id}, limit=1)
        if existing:
            row = existing[0]
            new_quantity = int(row.quantity) + quantity
            if new_quantity > stock:
                return _error(
                    "insufficient_stock",
                    f"Only {stock} items available. You already have {row.quantity} in your cart.",
                    409,
                )
            row.quantity = new_quantity
            created = False
        else:
            row = CartItem(id=new_id("cart"), user_id=user.id, product_id=product.id, quantity=quantity)
            db.add(row)
            created = True
        db.commit()
        db.refresh(row)
    except Exception as ex:
        db.rollback()
        logger.exception(f"[cart.add] uid={user.id} product={product.id}: {ex}")
        return _error("server_error", "Failed to add item to cart. Please try again.", 500)

    logger.info(f"[cart.add] uid={user.id} product={product.id} qty={row.quantity} created={created}")
    return {
        "ok": True,
        "item": row.to_dict(),
        "created": created,
        "message": added_message(product.name, quantity),
    }


@router.patch("/items/{item_id}")
async def update_quantity(
    item_id: str,
    payload: UpdateQuantityPayload,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    new_quantity = int(payload.quantity)
    if new_quantity < 1:
        return _error("invalid_quantity", "Quantity must be at least 1.", 400)
    item = get_row(db, CartItem, item_id)
    product = get_row(db, Product, item.product_id) if item and item.user_id == user.id else None
    if not product:
        return _error("not_found", "Product not found.", 404)
    stock = int(product.stock_quantity or 0)
    if new_quantity > stock:
        return _error("insufficient_stock", f"Only {stock} items available.", 409)
    try:
        item.quantity = new_quantity
        db.commit()
    except Exception as ex:
        db.rollback()
        logger.exception(f"[cart.update] uid={user.id} item={item_id}: {ex}")
        return _error("server_error", "Failed to update quantity. Please try again.", 500)
    return {"ok": True, "item": cart_line(item, product)}


@router.delete("/items/{item_id}")
async def remove_item(item_id: str, user: SessionUser = Depends(get_current_user), db: Session = Depends(get_db)):
    item = get_row(db, CartItem, item_id)
    if not item or item.user_id != user.id:
        return _error("not_found", "Cart item not found.", 404)
    try:
        db.delete(item)
        db.commit()
    except Exception as ex:
        db.rollback()
        logger.exception(f"[cart.remove] uid={user.id} item={item_id}: {ex}")
        return _error("server_error", "Failed to remove item. Please try again.", 500)
    return {"ok": True, "message": "Item removed from cart."}


@router.post("/summary")
async def cart_summary(
    payload: CartSummaryPayload,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    lines = load_cart(db, user.id)
    subtotal = cart_subtotal((p.price, i.quantity) for i, p in lines)
    discount = None
    discount_value = 0
    if payload.discountCode:
        try:
            code_row, discount_value = resolve_discount(db, user.id, payload.discountCode, subtotal)
        except DiscountRejected as rej:
            return JSONResponse(rej.to_dict(), status_code=rej.status_code)
        discount = {
            "code": code_row.code,
            "amount": money_out(discount_value),
            "description": code_row.description or "",
        }
    return {
        "itemCount": sum(int(i.quantity) for i, _ in lines),
        "subtotal": money_out(subtotal),
        "discount": discount,
        "total": money_out(order_total(subtotal, discount_value)),
    }
