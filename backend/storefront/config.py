# backend/storefront/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/storefront.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///storefront.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # The admin area is restricted to this single account
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@storefront.local")

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    ]

    # Presentation rules
    LOW_STOCK_THRESHOLD = _env_int("LOW_STOCK_THRESHOLD", 5)
    CATALOG_PAGE_SIZE = _env_int("CATALOG_PAGE_SIZE", 12)
    HOME_NEW_ARRIVALS = _env_int("HOME_NEW_ARRIVALS", 2)
    RECENT_SALES_LIMIT = _env_int("RECENT_SALES_LIMIT", 5)

    # What happens to variant rows when their parent is deleted:
    # "orphan" (leave in place), "cascade" (delete them), "restrict" (refuse)
    VARIANT_DELETE_POLICY = os.environ.get("VARIANT_DELETE_POLICY", "orphan")

    # Blob storage for item images
    STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "local")
    STORAGE_BUCKET = os.environ.get("STORAGE_BUCKET", "inventory-images")
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", "uploads")
    STORAGE_PUBLIC_BASE_URL = os.environ.get("STORAGE_PUBLIC_BASE_URL", "")
    MAX_IMAGE_BYTES = _env_int("MAX_IMAGE_BYTES", 10 * 1024 * 1024)

    S3_ACCESS_KEY = os.environ.get("S3_ACCESS_KEY")
    S3_SECRET_KEY = os.environ.get("S3_SECRET_KEY")
    S3_REGION = os.environ.get("S3_REGION")
    S3_ENDPOINT = os.environ.get("S3_ENDPOINT")
