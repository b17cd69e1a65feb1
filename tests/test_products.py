def test_listing_filters_and_sorts(client, make_product):
    make_product(name="Zed Lamp", brand="Acme", price=30, category="home-garden", condition="new")
    make_product(name="Alpha Lamp", brand="Lumo", price=20, category="home-garden", condition="used")
    make_product(name="Guide to lamps", price=5, category="books", condition="used")
    make_product(name="Football", price=15, category="sports", condition="new")

    res = client.get("/api/products", params={"search": "LAMP"})
    assert res.status_code == 200
    body = res.json()
    assert [p["name"] for p in body["products"]] == ["Alpha Lamp", "Guide to lamps", "Zed Lamp"]
    assert body["count"] == 3
    assert body["view"] == "grid"

    res = client.get("/api/products", params={"search": "lamp", "category": "home-garden", "condition": "used"})
    assert [p["name"] for p in res.json()["products"]] == ["Alpha Lamp"]

    res = client.get("/api/products", params={"sort": "price", "view": "list"})
    body = res.json()
    assert [p["price"] for p in body["products"]] == [5.0, 15.0, 20.0, 30.0]
    assert body["view"] == "list"


def test_listing_search_matches_category_text(client, make_product):
    make_product(name="Chess set", category="toys-games")
    res = client.get("/api/products", params={"search": "toys"})
    assert [p["name"] for p in res.json()["products"]] == ["Chess set"]


def test_listing_rejects_unknown_sort(client):
    res = client.get("/api/products", params={"sort": "createdAt"})
    assert res.status_code == 400


def test_facets(client):
    body = client.get("/api/products/facets").json()
    assert body["categories"][0] == "all"
    assert "electronics" in body["categories"]
    assert body["conditions"] == ["all", "new", "used", "refurbished"]
    assert body["sort"] == ["name", "brand", "price", "condition"]


def test_product_detail(client, make_product):
    product = make_product(name="Kettle", price="24.99", stock_quantity=3)
    body = client.get(f"/api/products/{product.id}").json()
    assert body["name"] == "Kettle"
    assert body["price"] == 24.99
    assert body["inStock"] is True
    assert body["quantityOptions"] == [1, 2, 3]


def test_product_detail_caps_quantity_options(client, make_product):
    product = make_product(stock_quantity=40)
    assert client.get(f"/api/products/{product.id}").json()["quantityOptions"] == list(range(1, 11))


def test_product_detail_out_of_stock(client, make_product):
    product = make_product(stock_quantity=0)
    body = client.get(f"/api/products/{product.id}").json()
    assert body["inStock"] is False
    assert body["quantityOptions"] == []


def test_product_detail_missing(client):
    res = client.get("/api/products/product_0_missing")
    assert res.status_code == 404
    assert res.json()["error"] == "not_found"
    assert res.json()["redirect"] == "/"


def test_book_view(client, make_product):
    book = make_product(name="Dune", brand="Frank Herbert", sku="9780441013593", category="books", stock_quantity=2, published_date="1965-08-01")
    body = client.get(f"/api/books/{book.id}").json()
    assert body["title"] == "Dune"
    assert body["author"] == "Frank Herbert"
    assert body["isbn"] == "9780441013593"
    assert body["publishedDate"] == "1965-08-01"
    assert body["stockStatus"] == "low_stock"


def test_book_missing(client):
    assert client.get("/api/books/nope").status_code == 404


def test_listing_capped_at_limit(client, make_product):
    from core.config import LISTING_LIMIT
    for i in range(LISTING_LIMIT + 1):
        make_product(name=f"item-{i:03d}")
    body = client.get("/api/products", params={"sort": "name"}).json()
    assert body["count"] == LISTING_LIMIT == 50
    assert [p["name"] for p in body["products"]] == [f"item-{i:03d}" for i in range(LISTING_LIMIT)]
