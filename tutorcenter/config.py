# -*- coding: utf-8 -*-
"""
Application settings read from the environment (.env file supported).
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")
    FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:3000")

    DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./tutorcenter.db")

    # Tokens are issued by the external login service, we only verify them
    SECRET_KEY = os.environ.get("SECRET_KEY") or "dev-secret-key-change-in-production"
    ALGORITHM = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 8

    # --- Payment generation ---
    PAYMENT_DUE_DAY = int(os.environ.get("PAYMENT_DUE_DAY", 5))
    PAYMENT_PRORATION_ENABLED = _env_bool("PAYMENT_PRORATION_ENABLED", False)
    AUTO_GENERATION_ENABLED = _env_bool("AUTO_GENERATION_ENABLED", True)
    GENERATION_CHECK_INTERVAL_SECONDS = int(os.environ.get("GENERATION_CHECK_INTERVAL_SECONDS", 60 * 60))
    GENERATION_LEASE_MINUTES = int(os.environ.get("GENERATION_LEASE_MINUTES", 30))
    RECOVERY_WINDOW_MONTHS = int(os.environ.get("RECOVERY_WINDOW_MONTHS", 3))


settings = Config()
