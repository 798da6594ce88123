import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = LOG_LEVEL == "DEBUG"

STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")

STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
if not STRIPE_WEBHOOK_SECRET:
    raise ValueError("STRIPE_WEBHOOK_SECRET must be set in the environment")

ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
if not ADMIN_PASSWORD:
    raise ValueError("ADMIN_PASSWORD must be set in the environment")

KLAVIYO_API_KEY = os.getenv("KLAVIYO_API_KEY", "")
ALERT_EMAIL = os.getenv("ALERT_EMAIL", "")

BOOKINGS_FILE = Path(os.getenv("BOOKINGS_FILE", "bookings.json"))

CURRENCY = os.getenv("CURRENCY", "usd")
CHECKOUT_SUCCESS_URL = os.getenv("CHECKOUT_SUCCESS_URL", "https://your-website.com/success")
CHECKOUT_CANCEL_URL = os.getenv("CHECKOUT_CANCEL_URL", "https://your-website.com/cancel")

DEFAULT_PROPERTY_CODE = os.getenv("DEFAULT_PROPERTY_CODE", "cos1")

ALLOWED_ORIGINS_RAW = os.getenv("ALLOWED_ORIGINS", "*")

ALLOWED_ORIGINS: list[str] = [
    origin.strip() for origin in ALLOWED_ORIGINS_RAW.split(",")
]
