import os

# Must be set before core.database is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ADMIN_EMAILS"] = "admin@example.com,other-admin@example.com"
os.environ.setdefault("ADMIN_WRITE_LIMIT", "100000")
os.environ.setdefault("DISCOUNT_ATTEMPT_LIMIT", "100000")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from core.auth import SessionUser, get_current_user
from core.database import Base, SessionLocal, engine, init_db
from main import app
from models.cart import CartItem
from models.discounts import DiscountCode
from models.product import Product
from models.seller_earnings import SellerEarning
from utils.ids import new_id
from utils.pricing import to_money

BUYER = SessionUser(id="buyer-1", email="buyer@example.com", display_name="Buyer")
SELLER = SessionUser(id="seller-1", email="admin@example.com", display_name="Seller", is_admin=True)
OTHER_SELLER = SessionUser(id="seller-2", email="other-admin@example.com", display_name="Other", is_admin=True)


@pytest.fixture(autouse=True)
def fresh_db():
    init_db()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def login():
    def _login(user: SessionUser):
        app.dependency_overrides[get_current_user] = lambda: user
        return user
    return _login


@pytest.fixture
def make_product(db):
    def _make(**kw):
        fields = {
            "id": new_id("product"),
            "user_id": SELLER.id,
            "name": "Desk Lamp",
            "brand": "Lumo",
            "description": "A small lamp",
            "price": 10,
            "stock_quantity": 10,
            "category": "home-garden",
            "condition": "new",
        }
        fields.update(kw)
        fields["price"] = to_money(fields["price"])
        product = Product(**fields)
        db.add(product)
        db.commit()
        return product
    return _make


@pytest.fixture
def make_discount(db):
    def _make(**kw):
        fields = {
            "id": new_id("disc"),
            "code": "SAVE10",
            "description": "10% off",
            "discount_type": "percentage",
            "discount_value": to_money(10),
            "minimum_order_amount": to_money(0),
            "max_uses": None,
            "current_uses": 0,
            "expires_at": None,
            "is_active": True,
            "created_by": SELLER.id,
        }
        fields.update(kw)
        discount = DiscountCode(**fields)
        db.add(discount)
        db.commit()
        return discount
    return _make


@pytest.fixture
def add_cart_row(db):
    def _add(user: SessionUser, product: Product, quantity: int):
        row = CartItem(id=new_id("cart"), user_id=user.id, product_id=product.id, quantity=quantity)
        db.add(row)
        db.commit()
        return row
    return _add


@pytest.fixture
def make_earning(db):
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _make(net, minutes=0, status="available", seller=SELLER):
        net = to_money(net)
        row = SellerEarning(
            id=new_id("earning"),
            seller_id=seller.id,
            order_id=new_id("order"),
            product_id=new_id("product"),
            quantity=1,
            unit_price=net,
            total_earnings=net,
            commission_rate=to_money(0),
            commission_amount=to_money(0),
            net_earnings=net,
            status=status,
            created_at=base + timedelta(minutes=minutes),
        )
        db.add(row)
        db.commit()
        return row
    return _make
