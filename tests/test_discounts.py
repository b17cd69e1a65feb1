from datetime import datetime, timezone

from conftest import BUYER

from models.discounts import DiscountCodeUse
from utils.ids import new_id
from utils.pricing import to_money


def _apply(client, code, subtotal):
    return client.post("/api/discounts/apply", json={"code": code, "subtotal": subtotal})


def test_apply_percentage(client, login, make_discount):
    login(BUYER)
    make_discount(code="SAVE10", description="Ten off", minimum_order_amount=to_money(50))
    res = _apply(client, " save10 ", 100)
    assert res.status_code == 200
    body = res.json()
    assert body["code"] == "SAVE10"
    assert body["amount"] == 10.0
    assert body["message"] == "You saved £10.00 with code SAVE10."


def test_apply_fixed_capped_at_subtotal(client, login, make_discount):
    login(BUYER)
    make_discount(code="FIVER", discount_type="fixed", discount_value=to_money(5))
    assert _apply(client, "FIVER", 3).json()["amount"] == 3.0


def test_apply_rejections(client, db, login, make_discount):
    login(BUYER)
    make_discount(code="OLD", expires_at=datetime(2000, 1, 1, tzinfo=timezone.utc))
    make_discount(code="FULL", max_uses=2, current_uses=2)
    make_discount(code="BIG", minimum_order_amount=to_money(50))
    make_discount(code="OFF", is_active=False)
    used = make_discount(code="ONCE")
    db.add(DiscountCodeUse(id=new_id("usage"), discount_code_id=used.id, user_id=BUYER.id, discount_amount=to_money(1)))
    db.commit()

    cases = {
        "": "missing_code",
        "NOPE": "invalid_code",
        "OFF": "invalid_code",
        "OLD": "expired",
        "FULL": "limit_reached",
        "BIG": "minimum_not_met",
        "ONCE": "already_used",
    }
    for code, reason in cases.items():
        res = _apply(client, code, 40)
        assert res.status_code == 400, code
        assert res.json()["error"] == reason, code


def test_minimum_message(client, login, make_discount):
    login(BUYER)
    make_discount(code="BIG", minimum_order_amount=to_money(50))
    assert _apply(client, "BIG", 49.99).json()["message"] == "This discount requires a minimum order of £50.00."


def test_apply_rate_limited(client, login, monkeypatch):
    import routers.discounts as discounts
    login(BUYER)
    monkeypatch.setattr(discounts, "check_discount_rate_limit", lambda uid: (False, "Too many discount code attempts. Please try again later."))
    res = _apply(client, "SAVE10", 100)
    assert res.status_code == 429
    assert res.json()["error"] == "rate_limited"


def test_apply_rejects_non_finite_subtotal(client, login, make_discount):
    login(BUYER)
    make_discount(code="SAVE10")
    res = client.post(
        "/api/discounts/apply",
        content='{"code": "SAVE10", "subtotal": NaN}',
        headers={"Content-Type": "application/json"},
    )
    assert res.status_code == 422
