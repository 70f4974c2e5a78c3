import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

BASE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_CHANNELS = ["card", "bank", "ussd", "qr", "mobile_money", "bank_transfer"]


class Settings(BaseModel):
    database_url: str = "sqlite:///./storefront.db"

    paystack_secret_key: str = ""
    paystack_base_url: str = "https://api.paystack.co"
    paystack_callback_url: Optional[str] = None
    paystack_webhook_secret: Optional[str] = None
    payment_channels: List[str] = DEFAULT_CHANNELS

    frontend_url: str = "http://localhost:3000"
    jwt_secret: str = ""

    shopify_store_domain: Optional[str] = None
    shopify_admin_token: Optional[str] = None
    shopify_api_version: str = "2024-01"

    # amounts above this are assumed to already be in kobo
    kobo_threshold: int = 10_000_000

    debug: bool = False

    @property
    def webhook_secret(self) -> str:
        return self.paystack_webhook_secret or self.paystack_secret_key

    @property
    def shopify_enabled(self) -> bool:
        return bool(self.shopify_store_domain and self.shopify_admin_token)


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Build the settings once at start-up from the process environment and .env."""
    # Force-load .env (Windows-safe, reload-safe)
    load_dotenv(dotenv_path=env_file or BASE_DIR / ".env")

    values = {
        "database_url": os.getenv("DATABASE_URL"),
        "paystack_secret_key": os.getenv("PAYSTACK_SECRET_KEY"),
        "paystack_base_url": os.getenv("PAYSTACK_BASE_URL"),
        "paystack_callback_url": os.getenv("PAYSTACK_CALLBACK_URL"),
        "paystack_webhook_secret": os.getenv("PAYSTACK_WEBHOOK_SECRET"),
        "frontend_url": os.getenv("FRONTEND_URL"),
        "jwt_secret": os.getenv("JWT_SECRET"),
        "shopify_store_domain": os.getenv("SHOPIFY_STORE_DOMAIN"),
        "shopify_admin_token": os.getenv("SHOPIFY_ADMIN_TOKEN"),
        "shopify_api_version": os.getenv("SHOPIFY_API_VERSION"),
        "kobo_threshold": os.getenv("KOBO_THRESHOLD"),
        "debug": os.getenv("DEBUG"),
    }
    return Settings(**{key: value for key, value in values.items() if value is not None})
