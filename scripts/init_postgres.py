"""
Initialize PostgreSQL database schema
Creates all tables defined in models; with --seed also loads a demo catalog
"""
import sys
import os

# Add parent directory to path to import backend modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.database import SessionLocal, init_db
from models.product import Product
from models.discounts import DiscountCode
from utils.ids import new_id
from utils.pricing import to_money

DEMO_SELLER_UID = os.getenv("DEMO_SELLER_UID", "demo-seller")

DEMO_PRODUCTS = [
    {"name": "Noise Cancelling Headphones", "brand": "Sony", "description": "Immerse in music with ANC.", "price": 199.99, "stock_quantity": 40, "category": "electronics", "condition": "new"},
    {"name": "Mechanical Keyboard", "brand": "Keychron", "description": "Hot-swappable RGB keyboard.", "price": 79.99, "stock_quantity": 30, "category": "electronics", "condition": "refurbished"},
    {"name": "Casual Sneakers", "brand": "Nike", "description": "Comfortable everyday wear.", "price": 49.99, "stock_quantity": 50, "category": "clothing", "condition": "new"},
    {"name": "The Pragmatic Programmer", "brand": "Hunt & Thomas", "description": "Classic software craftsmanship book.", "price": 24.50, "stock_quantity": 4, "category": "books", "condition": "used", "sku": "9780135957059", "published_date": "2019-09-13"},
    {"name": "Camping Lantern", "brand": "Coleman", "description": "Rechargeable LED lantern.", "price": 19.00, "stock_quantity": 0, "category": "sports", "condition": "new"},
]


def seed_demo_data():
    db = SessionLocal()
    try:
        if db.query(Product).count() > 0:
            print("Products already exist, skipping seed")
            return
        for p in DEMO_PRODUCTS:
            fields = dict(p)
            fields["price"] = to_money(fields["price"])
            db.add(Product(id=new_id("product"), user_id=DEMO_SELLER_UID, **fields))
        db.add(DiscountCode(
            id=new_id("disc"),
            code="WELCOME10",
            description="10% off orders over £50",
            discount_type="percentage",
            discount_value=to_money(10),
            minimum_order_amount=to_money(50),
            current_uses=0,
            is_active=True,
            created_by=DEMO_SELLER_UID,
        ))
        db.commit()
        print(f"✓ Seeded {len(DEMO_PRODUCTS)} products and 1 discount code")
    finally:
        db.close()


def init_database():
    """Create all tables in the database"""
    print("Creating PostgreSQL tables...")

    try:
        init_db()
        print("✓ Tables created successfully!")
        print("\nCreated tables:")
        for name in (
            "users", "products", "cart_items", "orders", "order_items",
            "discount_codes", "discount_code_uses", "seller_earnings",
            "payout_requests", "payout_items",
        ):
            print(f"  - {name}")
    except Exception as e:
        print(f"✗ Error creating tables: {e}")
        sys.exit(1)

if __name__ == "__main__":
    init_database()
    if "--seed" in sys.argv[1:]:
        seed_demo_data()
