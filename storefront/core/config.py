"""Application configuration.

Environment variables override all defaults. A local .env file is loaded
when python-dotenv finds one next to the project root.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

_PROJECT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_PROJECT_DIR / ".env", override=False)


def _csv_env(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class Settings:
    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Business identity (invoice header, reminder messages, backup file names)
    BUSINESS_NAME: str = os.getenv("BUSINESS_NAME", "Moonlight Scent")
    BUSINESS_ADDRESS: str = os.getenv("BUSINESS_ADDRESS", "Lagos, Nigeria")
    BUSINESS_PHONE: str = os.getenv("BUSINESS_PHONE", "")

    # Money formatting. The PDF fonts have no naira glyph, so invoices use the code.
    CURRENCY_SYMBOL: str = os.getenv("CURRENCY_SYMBOL", "₦")
    PDF_CURRENCY_SYMBOL: str = os.getenv("PDF_CURRENCY_SYMBOL", "NGN ")

    # Inventory rules
    LOW_STOCK_THRESHOLD: int = int(os.getenv("LOW_STOCK_THRESHOLD", "10"))
    TOP_N: int = int(os.getenv("TOP_N", "5"))

    # Idle sale sessions are dropped after this many seconds
    SALE_SESSION_TTL: int = int(os.getenv("SALE_SESSION_TTL", "3600"))

    # Product images and generated invoices
    MEDIA_ROOT: str = os.getenv("MEDIA_ROOT", str(_PROJECT_DIR / "media"))
    MEDIA_URL: str = os.getenv("MEDIA_URL", "/media")
    INVOICE_DIR: str = os.getenv("INVOICE_DIR", str(_PROJECT_DIR / "invoices"))

    # Outbound reminders
    WHATSAPP_BASE_URL: str = os.getenv("WHATSAPP_BASE_URL", "https://wa.me")

    # CORS (dashboard dev servers)
    CORS_ORIGINS: List[str] = _csv_env(
        "CORS_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:8080,http://127.0.0.1:8080",
    )


settings = Settings()
