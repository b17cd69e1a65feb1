import os
import logging
from decimal import Decimal
from dotenv import load_dotenv

# Load .env from project root
try:
    load_dotenv(dotenv_path=os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".env")))
except Exception:
    try:
        load_dotenv()
    except Exception:
        pass

APP_NAME = os.getenv("APP_NAME", "Marketplace")

ADMIN_EMAILS = [e.strip().lower() for e in (os.getenv("ADMIN_EMAILS", "").split(",") if os.getenv("ADMIN_EMAILS") else []) if e.strip()]

# Platform commission taken from every order line before it becomes seller earnings
COMMISSION_RATE = Decimal(os.getenv("COMMISSION_RATE", "0.05"))

# Inventory
LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", "5"))
BOOK_LOW_STOCK_THRESHOLD = int(os.getenv("BOOK_LOW_STOCK_THRESHOLD", "5"))
MAX_SELECTABLE_QUANTITY = int(os.getenv("MAX_SELECTABLE_QUANTITY", "10"))

# Catalog listing
LISTING_LIMIT = int(os.getenv("LISTING_LIMIT", "50"))
PRODUCT_CATEGORIES = [
    "electronics", "clothing", "books", "home-garden", "sports",
    "toys-games", "automotive", "health-beauty", "jewelry", "collectibles",
]
PRODUCT_CONDITIONS = ["new", "used", "refurbished"]
LISTING_SORT_FIELDS = ["name", "brand", "price", "condition"]

# Checkout
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "£")
DEFAULT_COUNTRY = os.getenv("DEFAULT_COUNTRY", "United Kingdom")

# Payouts
PAYMENT_METHODS = ["bank_transfer", "paypal", "stripe"]

# Logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
logger = logging.getLogger("marketplace")
