import pytest

from core.query import QueryError, get_row, list_rows, patch_row, to_snake
from models.product import Product
from routers.products import build_listing_where


def _names(rows):
    return sorted(p.name for p in rows)


def test_to_snake():
    assert to_snake("stockQuantity") == "stock_quantity"
    assert to_snake("user_id") == "user_id"


def test_equality_and_camel_case_fields(db, make_product):
    make_product(name="A", category="books", stock_quantity=0)
    make_product(name="B", category="books", stock_quantity=4)
    make_product(name="C", category="sports", stock_quantity=4)
    rows = list_rows(db, Product, where={"category": "books", "stockQuantity": 4})
    assert _names(rows) == ["B"]


def test_contains_is_case_insensitive(db, make_product):
    make_product(name="Brass Desk LAMP")
    make_product(name="Floor lamp")
    make_product(name="Chair")
    rows = list_rows(db, Product, where={"name": {"contains": "Lamp"}})
    assert _names(rows) == ["Brass Desk LAMP", "Floor lamp"]


def test_contains_escapes_wildcards(db, make_product):
    make_product(name="100% cotton")
    make_product(name="100 cotton")
    rows = list_rows(db, Product, where={"name": {"contains": "100%"}})
    assert _names(rows) == ["100% cotton"]


def test_or_and_composition(db, make_product):
    make_product(name="Lamp", brand="Acme", category="home-garden", condition="new")
    make_product(name="Kettle", brand="Lampwright", category="home-garden", condition="used")
    make_product(name="Lamp Book", category="books", condition="new")
    where = {"AND": [
        {"OR": [{"name": {"contains": "lamp"}}, {"brand": {"contains": "lamp"}}]},
        {"category": "home-garden"},
    ]}
    assert _names(list_rows(db, Product, where=where)) == ["Kettle", "Lamp"]


def test_empty_or_matches_nothing(db, make_product):
    make_product(name="Anything")
    assert list_rows(db, Product, where={"OR": []}) == []


def test_order_and_limit(db, make_product):
    make_product(name="b", price=3)
    make_product(name="a", price=1)
    make_product(name="c", price=2)
    rows = list_rows(db, Product, order_by={"price": "desc"}, limit=2)
    assert [p.name for p in rows] == ["b", "c"]


def test_unknown_field_rejected(db):
    with pytest.raises(QueryError):
        list_rows(db, Product, where={"colour": "red"})
    with pytest.raises(QueryError):
        list_rows(db, Product, order_by={"price": "sideways"})


def test_get_and_patch_row(db, make_product):
    product = make_product(name="Old")
    patch_row(product, {"name": "New", "stockQuantity": 7})
    db.commit()
    fresh = get_row(db, Product, product.id)
    assert fresh.name == "New"
    assert fresh.stock_quantity == 7
    assert get_row(db, Product, "missing") is None


def test_build_listing_where_shapes():
    assert build_listing_where() == {}
    assert build_listing_where(category="books") == {"category": "books"}
    where = build_listing_where(search="lamp", category="books", condition="used")
    assert set(where.keys()) == {"AND"}
    assert where["AND"][1] == {"condition": "used"}
    assert where["AND"][0]["AND"][1] == {"category": "books"}
    assert len(where["AND"][0]["AND"][0]["OR"]) == 4
