"""
Application settings and configuration
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # Application
    APP_NAME = "Spring Lane Nursery API"
    VERSION = "1.0.0"
    DEBUG = _as_bool(os.getenv("DEBUG", "False"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Business calendar - "today" for date validation is computed here
    TIMEZONE = os.getenv("TIMEZONE", "Europe/London")

    # CORS
    ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.getenv(
            "ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    ]

    # Stripe
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
    STRIPE_PUBLISHABLE_KEY = os.getenv("STRIPE_PUBLISHABLE_KEY", "")  # front end only
    STRIPE_CURRENCY = "gbp"

    # Postmark
    POSTMARK_SERVER_TOKEN = os.getenv("POSTMARK_SERVER_TOKEN", "")
    POSTMARK_API_URL = os.getenv("POSTMARK_API_URL", "https://api.postmarkapp.com/email")
    EMAIL_TIMEOUT_SECONDS = float(os.getenv("EMAIL_TIMEOUT_SECONDS", "30"))
    FROM_EMAIL = os.getenv("FROM_EMAIL", "noreply@yourdomain.com")
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@yourdomain.com")
    HR_EMAIL = os.getenv("HR_EMAIL") or ADMIN_EMAIL

    # PDF archive copies
    ATTACH_PDF_TO_ADMIN_EMAIL = _as_bool(os.getenv("ATTACH_PDF_TO_ADMIN_EMAIL", "True"))
    PDF_LOGO_PATH = os.getenv(
        "PDF_LOGO_PATH",
        os.path.join(os.getcwd(), "public", "branding assets", "Spring lane full logo.png"),
    )

    # Keep-alive cron
    CRON_SECRET = (os.getenv("CRON_SECRET") or "").strip()

    # Nursery contact block (emails and PDF footer)
    NURSERY_NAME = "Spring Lane Nursery"
    NURSERY_ADDRESS = "23 Spring Lane, Croydon SE25 4SP"
    NURSERY_MOBILE = "07804 549 139"
    NURSERY_LANDLINE = "0203 561 8257"
    NURSERY_EMAIL = "hello@springlanenursery.co.uk"
    NURSERY_WEBSITE = "www.springlanenursery.co.uk"


settings = Settings()
