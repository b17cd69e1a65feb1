from conftest import BUYER

from core.query import list_rows
from models.cart import CartItem


def _rows(db):
    db.expire_all()
    return list_rows(db, CartItem, where={"user_id": BUYER.id})


def test_cart_requires_session(client):
    assert client.get("/api/cart").status_code == 401


def test_add_creates_then_increments(client, db, login, make_product):
    login(BUYER)
    product = make_product(name="Mug", stock_quantity=5)

    res = client.post("/api/cart/items", json={"productId": product.id, "quantity": 2})
    assert res.status_code == 200
    assert res.json()["created"] is True
    assert res.json()["message"] == '2 x "Mug" has been added to your cart.'

    res = client.post("/api/cart/items", json={"productId": product.id, "quantity": 1})
    assert res.json()["created"] is False

    rows = _rows(db)
    assert len(rows) == 1
    assert rows[0].quantity == 3


def test_add_rejects_going_over_stock(client, db, login, make_product):
    login(BUYER)
    product = make_product(stock_quantity=3)
    client.post("/api/cart/items", json={"productId": product.id, "quantity": 2})

    res = client.post("/api/cart/items", json={"productId": product.id, "quantity": 2})
    assert res.status_code == 409
    assert res.json()["message"] == "Only 3 items available. You already have 2 in your cart."
    assert _rows(db)[0].quantity == 2


def test_add_rejections(client, login, make_product):
    login(BUYER)
    sold_out = make_product(name="Gone", stock_quantity=0)
    few = make_product(stock_quantity=2)

    assert client.post("/api/cart/items", json={"productId": "missing"}).status_code == 404
    res = client.post("/api/cart/items", json={"productId": sold_out.id})
    assert res.status_code == 409
    assert res.json()["error"] == "out_of_stock"
    res = client.post("/api/cart/items", json={"productId": few.id, "quantity": 3})
    assert res.json()["error"] == "insufficient_stock"
    res = client.post("/api/cart/items", json={"productId": few.id, "quantity": 0})
    assert res.status_code == 400


def test_view_cart(client, login, make_product, add_cart_row):
    login(BUYER)
    a = make_product(name="A", price="19.99", stock_quantity=5)
    b = make_product(name="B", price=5, stock_quantity=1)
    add_cart_row(BUYER, a, 2)
    add_cart_row(BUYER, b, 1)

    body = client.get("/api/cart").json()
    assert body["itemCount"] == 3
    assert body["subtotal"] == 44.98
    lines = {line["product"]["name"]: line for line in body["items"]}
    assert lines["A"]["lineTotal"] == 39.98
    assert lines["B"]["exceedsStock"] is False


def test_cart_drops_rows_for_deleted_products(client, db, login, make_product, add_cart_row):
    login(BUYER)
    product = make_product()
    add_cart_row(BUYER, product, 1)
    db.delete(product)
    db.commit()
    body = client.get("/api/cart").json()
    assert body["items"] == []
    assert body["subtotal"] == 0.0


def test_update_and_remove(client, db, login, make_product, add_cart_row):
    login(BUYER)
    product = make_product(stock_quantity=4)
    row = add_cart_row(BUYER, product, 1)

    res = client.patch(f"/api/cart/items/{row.id}", json={"quantity": 4})
    assert res.status_code == 200
    assert res.json()["item"]["quantity"] == 4
    assert client.patch(f"/api/cart/items/{row.id}", json={"quantity": 5}).status_code == 409

    assert client.delete(f"/api/cart/items/{row.id}").status_code == 200
    assert _rows(db) == []
    assert client.delete(f"/api/cart/items/{row.id}").status_code == 404


def test_cannot_touch_someone_elses_cart(client, login, make_product, add_cart_row):
    from conftest import SELLER
    product = make_product()
    row = add_cart_row(SELLER, product, 1)
    login(BUYER)
    assert client.patch(f"/api/cart/items/{row.id}", json={"quantity": 2}).status_code == 404
    assert client.delete(f"/api/cart/items/{row.id}").status_code == 404


def test_summary_with_discount(client, login, make_product, make_discount, add_cart_row):
    login(BUYER)
    product = make_product(price=25, stock_quantity=10)
    add_cart_row(BUYER, product, 4)
    make_discount(code="SAVE10", discount_value=10)

    body = client.post("/api/cart/summary", json={"discountCode": "save10"}).json()
    assert body["subtotal"] == 100.0
    assert body["discount"]["code"] == "SAVE10"
    assert body["discount"]["amount"] == 10.0
    assert body["total"] == 90.0

    body = client.post("/api/cart/summary", json={}).json()
    assert body["discount"] is None
    assert body["total"] == 100.0


def test_single_item_message_has_no_count(client, login, make_product):
    login(BUYER)
    product = make_product(name="Mug", stock_quantity=5)
    res = client.post("/api/cart/items", json={"productId": product.id})
    assert res.json()["message"] == '"Mug" has been added to your cart.'


def test_add_caps_selectable_quantity(client, db, login, make_product):
    login(BUYER)
    product = make_product(stock_quantity=40)

    res = client.post("/api/cart/items", json={"productId": product.id, "quantity": 11})
    assert res.status_code == 400
    assert res.json()["error"] == "invalid_quantity"
    assert _rows(db) == []

    assert client.post("/api/cart/items", json={"productId": product.id, "quantity": 10}).status_code == 200
