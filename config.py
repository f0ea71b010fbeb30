"""
Runtime configuration for the storefront API.

Values come from the environment (or a local .env file) and are read once
at import time.
"""
import os

from dotenv import load_dotenv

load_dotenv()

# ----------------------- Database -----------------------
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

# ----------------------- Auth -----------------------
JWT_SECRET = os.getenv("JWT_SECRET", "devsecret")
JWT_ALGO = "HS256"
JWT_EXPIRE_DAYS = int(os.getenv("JWT_EXPIRE_DAYS", 7))
MIN_PASSWORD_LENGTH = 6

# ----------------------- Payments -----------------------
BRAINTREE_ENVIRONMENT = os.getenv("BRAINTREE_ENVIRONMENT", "sandbox")
BRAINTREE_MERCHANT_ID = os.getenv("BRAINTREE_MERCHANT_ID", "")
BRAINTREE_PUBLIC_KEY = os.getenv("BRAINTREE_PUBLIC_KEY", "")
BRAINTREE_PRIVATE_KEY = os.getenv("BRAINTREE_PRIVATE_KEY", "")

# ----------------------- Catalog -----------------------
PRODUCTS_PER_PAGE = 6
LATEST_PRODUCTS_LIMIT = 12
RELATED_PRODUCTS_LIMIT = 3
PHOTO_MAX_BYTES = 1_000_000

# ----------------------- Server -----------------------
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
PORT = int(os.getenv("PORT", 8000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SEED_ENABLED = os.getenv("SEED_ENABLED", "false").lower() == "true"
SEED_ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "admin123")
