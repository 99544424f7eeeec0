import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _engine_options():
    # Overrides the SERIALIZABLE default for server databases; SQLite is handled in app.py
    level = os.getenv("DB_ISOLATION_LEVEL")
    return {"isolation_level": level} if level else {}


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the code as courtbook.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "courtbook.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options()

    # Take the SQLite write lock at BEGIN so capacity checks serialize
    SQLITE_SERIALIZABLE = os.getenv("SQLITE_SERIALIZABLE", "true").lower() == "true"

    # Unit-of-work retries on serialization failures / lock timeouts
    TX_MAX_ATTEMPTS = int(os.getenv("TX_MAX_ATTEMPTS", "5"))
    TX_RETRY_BACKOFF_SECONDS = float(os.getenv("TX_RETRY_BACKOFF_SECONDS", "0.05"))

    # Payment processor (Stripe Checkout)
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "ars")
    PUBLIC_URL = os.getenv("PUBLIC_URL", "")
    PAYMENT_SUCCESS_URL = os.getenv("PAYMENT_SUCCESS_URL")
    PAYMENT_FAILURE_URL = os.getenv("PAYMENT_FAILURE_URL")

    # Pricing: fixed platform commission per checkout, default deposit percentage
    COMMISSION_FIXED = int(os.getenv("COMMISSION_FIXED", "1000"))
    DEFAULT_DEPOSIT_PCT = int(os.getenv("DEFAULT_DEPOSIT_PCT", "30"))

    # Return pages bounce the browser back into the mobile app
    APP_DEEP_LINK = os.getenv("APP_DEEP_LINK", "courtbook://payment-result")

    # Shared key for reviewer endpoints (checks, settlements, reconciliation)
    REVIEWER_API_KEY = os.getenv("REVIEWER_API_KEY")

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"
    SMTP_FROM_NAME = os.getenv("SMTP_FROM_NAME", "Courtbook")
    SMTP_TIMEOUT = int(os.getenv("SMTP_TIMEOUT", "10"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False
