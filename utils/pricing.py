"""
Money rules shared by cart, checkout, admin and payouts.

All arithmetic is done on Decimal and rounded half-up to pennies; floats only
appear at the API edge (money_out).
"""
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Tuple, Any

PENNY = Decimal("0.01")
# Largest value a Numeric(12, 2) column holds
MAX_AMOUNT = 9999999999.99


def to_money(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(PENNY, rounding=ROUND_HALF_UP)


def money_out(value: Any) -> float:
    return float(to_money(value))


def line_total(unit_price: Any, quantity: int) -> Decimal:
    return to_money(to_money(unit_price) * int(quantity))


def cart_subtotal(lines: Iterable[Tuple[Any, int]]) -> Decimal:
    """lines: (unit_price, quantity) pairs"""
    total = Decimal("0.00")
    for price, qty in lines:
        total += line_total(price, qty)
    return to_money(total)


def discount_amount(discount_type: str, discount_value: Any, subtotal: Any) -> Decimal:
    """Percentage or fixed discount, never more than the subtotal."""
    sub = to_money(subtotal)
    value = Decimal(str(discount_value or 0))
    if discount_type == "percentage":
        amount = sub * value / Decimal(100)
    else:
        amount = value
    return to_money(max(Decimal(0), min(amount, sub)))


def order_total(subtotal: Any, discount: Any = 0) -> Decimal:
    return to_money(max(Decimal(0), to_money(subtotal) - to_money(discount)))


def commission_split(unit_price: Any, quantity: int, rate: Decimal) -> dict:
    total = line_total(unit_price, quantity)
    commission = to_money(total * Decimal(str(rate)))
    return {
        "total_earnings": total,
        "commission_rate": Decimal(str(rate)),
        "commission_amount": commission,
        "net_earnings": to_money(total - commission),
    }


def inventory_stats(products: Iterable[Any], low_stock_threshold: int) -> dict:
    products = list(products)
    total_value = Decimal("0.00")
    low = 0
    categories = set()
    for p in products:
        stock = int(p.stock_quantity or 0)
        total_value += line_total(p.price, stock)
        if stock < low_stock_threshold:
            low += 1
        categories.add(p.category)
    return {
        "totalProducts": len(products),
        "totalValue": money_out(total_value),
        "lowStock": low,
        "categories": len(categories),
    }


def quantity_options(stock: int, cap: int) -> List[int]:
    """Selectable quantities on the detail page: 1..min(cap, stock)."""
    return list(range(1, max(0, min(int(cap), int(stock or 0))) + 1))


def stock_badge(stock: int, low_threshold: int) -> str:
    stock = int(stock or 0)
    if stock > low_threshold:
        return "in_stock"
    if stock > 0:
        return "low_stock"
    return "out_of_stock"


def valid_amount(value: Any) -> bool:
    """Finite, at least one penny, and storable."""
    if value is None:
        return False
    v = float(value)
    return math.isfinite(v) and 0 < v <= MAX_AMOUNT and to_money(v) > 0
