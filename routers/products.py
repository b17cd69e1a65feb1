from typing import Optional, Dict, Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.config import (
    logger,
    LISTING_LIMIT,
    LISTING_SORT_FIELDS,
    PRODUCT_CATEGORIES,
    PRODUCT_CONDITIONS,
    MAX_SELECTABLE_QUANTITY,
    BOOK_LOW_STOCK_THRESHOLD,
)
from core.database import get_db
from core.query import list_rows, get_row
from models.product import Product
from utils.pricing import quantity_options, stock_badge

router = APIRouter(prefix="/api", tags=["products"])

SEARCH_FIELDS = ("name", "brand", "description", "category")


def build_listing_where(search: str = "", category: str = "all", condition: str = "all") -> Dict[str, Any]:
    """
    Free text is ORed across name/brand/description/category; category and
    condition filters are ANDed on top when not 'all'.
    """
    search = (search or "").strip()
    query: Dict[str, Any] = {}
    if search:
        query = {"OR": [{f: {"contains": search}} for f in SEARCH_FIELDS]}
    if category and category != "all":
        query = {"AND": [query, {"category": category}]} if query else {"category": category}
    if condition and condition != "all":
        query = {"AND": [query, {"condition": condition}]} if query else {"condition": condition}
    return query


@router.get("/products")
async def list_products(
    search: str = "",
    category: str = "all",
    condition: str = "all",
    sort: str = "name",
    view: str = "grid",
    db: Session = Depends(get_db),
):
    if sort not in LISTING_SORT_FIELDS:
        raise HTTPException(status_code=400, detail=f"Invalid sort field: {sort}")
    if view not in ("grid", "list"):
        view = "grid"
    where = build_listing_where(search, category, condition)
    try:
        rows = list_rows(db, Product, where=where, order_by={sort: "asc"}, limit=LISTING_LIMIT)
    except Exception as ex:
        logger.exception(f"[products.list] search={search!r} category={category} condition={condition}: {ex}")
        raise HTTPException(status_code=500, detail="Failed to load products. Please try again.")
    products = [p.to_dict() for p in rows]
    return {"products": products, "count": len(products), "view": view}


@router.get("/products/facets")
async def product_facets():
    return {
        "categories": ["all"] + PRODUCT_CATEGORIES,
        "conditions": ["all"] + PRODUCT_CONDITIONS,
        "sort": LISTING_SORT_FIELDS,
    }


@router.get("/products/{product_id}")
async def get_product(product_id: str, db: Session = Depends(get_db)):
    product = get_row(db, Product, product_id)
    if not product:
        return JSONResponse(
            {"error": "not_found", "message": "The product you are looking for does not exist.", "redirect": "/"},
            status_code=404,
        )
    data = product.to_dict()
    stock = int(product.stock_quantity or 0)
    data["inStock"] = stock > 0
    data["quantityOptions"] = quantity_options(stock, MAX_SELECTABLE_QUANTITY)
    return data


@router.get("/books/{book_id}")
async def get_book(book_id: str, db: Session = Depends(get_db)):
    book: Optional[Product] = get_row(db, Product, book_id)
    if not book:
        return JSONResponse({"error": "not_found", "message": "Book not found.", "redirect": "/"}, status_code=404)
    data = book.to_book_dict()
    data["stockStatus"] = stock_badge(book.stock_quantity, BOOK_LOW_STOCK_THRESHOLD)
    return data
