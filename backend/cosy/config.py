# backend/cosy/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/cosy.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///cosy.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Public key every /api request must present in the "apikey" header.
    # Unset means the check is disabled (local development).
    PUBLIC_API_KEY = os.environ.get("COSY_PUBLIC_API_KEY")

    # Server-only credential; required by the invite validation endpoint.
    SERVICE_ROLE_KEY = os.environ.get("COSY_SERVICE_ROLE_KEY")

    # Base URL used when building shareable invite links
    APP_URL = os.environ.get("COSY_APP_URL", "http://localhost:3000")

    # Before this local hour the business day is still "yesterday"
    BUSINESS_DAY_CUTOFF_HOUR = int(os.environ.get("BUSINESS_DAY_CUTOFF_HOUR", "7"))

    INVITE_DEFAULT_DAYS = 2
