# backend/sinari/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/sinari.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///sinari.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Bearer session lifetime; a new login replaces the previous session
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))

    # The root owner can never be demoted or have its role changed
    ROOT_OWNER_EMAIL = os.environ.get("ROOT_OWNER_EMAIL", "owner@sinari.local")

    TRACKING_BASE_URL = os.environ.get(
        "TRACKING_BASE_URL",
        "https://sinari.com/services/track",
    )

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    }

    # Outbound customer messages (messaging channel); off means log-only
    NOTIFY_CUSTOMERS = _env_bool("NOTIFY_CUSTOMERS", False)


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    ROOT_OWNER_EMAIL = "root_owner@test.local"
