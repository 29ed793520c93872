"""
Application configuration.
This module defines the configuration settings for the Flask application, including the spreadsheet row store,
secret key, timezone and display locale. It uses environment variables for sensitive information and defaults for
development. When GOOGLE_SHEET_ID or GOOGLE_SERVICE_ACCOUNT_KEY is missing the application runs in fallback mode
against an in-process store.
"""

import os


class Config:
    """Base configuration shared by all environments."""

    # IMPORTANT: change this in production
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me-please")

    # Spreadsheet row store (service-account JSON is passed inline, not as a path)
    GOOGLE_SHEET_ID = os.environ.get("GOOGLE_SHEET_ID")
    GOOGLE_SERVICE_ACCOUNT_KEY = os.environ.get("GOOGLE_SERVICE_ACCOUNT_KEY")

    # Dates and times written to the sheet use this zone
    LOCAL_TIMEZONE = os.environ.get("LOCAL_TIMEZONE", "Africa/Cairo")
    DISPLAY_LOCALE = os.environ.get("DISPLAY_LOCALE", "ar_EG")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # CSRF protection for forms
    WTF_CSRF_ENABLED = True

    # App UI name (used in templates)
    APP_NAME = "تقارير الخصومات"


class TestConfig(Config):
    """Configuration used by the test suite (no remote store, no CSRF)."""

    TESTING = True
    SECRET_KEY = "test-secret"
    GOOGLE_SHEET_ID = None
    GOOGLE_SERVICE_ACCOUNT_KEY = None
    WTF_CSRF_ENABLED = False
