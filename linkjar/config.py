import os


def _env_flag(name):
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


class Config:
    """Base configuration. Shared across all environments."""

    # --- Required ---
    SECRET_KEY = os.environ.get("SECRET_KEY")

    # Handle DATABASE_URL: some PaaS providers (Railway, Heroku) use
    # "postgres://" which SQLAlchemy 1.4+ doesn't accept.
    _db_url = os.environ.get("DATABASE_URL", "")
    if _db_url.startswith("postgres://"):
        _db_url = _db_url.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = _db_url or None

    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET")
    STRIPE_PUBLISHABLE_KEY = os.environ.get("STRIPE_PUBLISHABLE_KEY")
    APP_BASE_URL = os.environ.get("APP_BASE_URL", "http://localhost:5000")
    # Where Stripe sends the browser back to after checkout.
    FRONTEND_URL = os.environ.get("FRONTEND_URL", APP_BASE_URL)

    # --- Pricing ---
    # All money is stored and computed in minor units (cents).
    CURRENCY = os.environ.get("CURRENCY", "usd")
    SIGNUP_PRICE_CENTS = int(os.environ.get("SIGNUP_PRICE_CENTS", 2900))  # $29.00
    SIGNUP_PRODUCT_NAME = os.environ.get(
        "SIGNUP_PRODUCT_NAME", "Link-in-bio Profile"
    )
    TIP_MIN_DOLLARS = int(os.environ.get("TIP_MIN_DOLLARS", 5))
    TIP_MAX_DOLLARS = int(os.environ.get("TIP_MAX_DOLLARS", 500))
    # Platform fee in basis points: 1000 = 10%.
    PLATFORM_FEE_BPS = int(os.environ.get("PLATFORM_FEE_BPS", 1000))

    # Calendar month boundaries for tip stats are computed in this zone.
    STATS_TIMEZONE = os.environ.get("STATS_TIMEZONE", "UTC")

    # --- Email (SMTP) ---
    MAIL_SMTP_HOST = os.environ.get("MAIL_SMTP_HOST", "smtp.gmail.com")
    MAIL_SMTP_PORT = int(os.environ.get("MAIL_SMTP_PORT", 587))
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_FROM_NAME = os.environ.get("MAIL_FROM_NAME", "linkjar")
    MAIL_FROM_ADDRESS = os.environ.get("MAIL_FROM_ADDRESS")  # defaults to MAIL_USERNAME
    # When set, welcome emails are skipped (local development, tests).
    MAIL_SUPPRESS_SEND = _env_flag("MAIL_SUPPRESS_SEND")

    # --- SQLAlchemy ---
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    # --- Session / cookies ---
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    REMEMBER_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_SAMESITE = "Lax"

    # --- WTF / CSRF ---
    WTF_CSRF_ENABLED = True

    @staticmethod
    def validate():
        """Fail fast if required env vars are missing."""
        required = [
            "SECRET_KEY",
            "DATABASE_URL",
            "STRIPE_SECRET_KEY",
            "STRIPE_WEBHOOK_SECRET",
            "APP_BASE_URL",
        ]
        missing = [v for v in required if not os.environ.get(v)]
        if missing:
            raise RuntimeError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


class DevConfig(Config):
    """Local development."""

    DEBUG = True
    SESSION_COOKIE_SECURE = False
    REMEMBER_COOKIE_SECURE = False


class TestConfig(Config):
    """Testing — in-memory SQLite, CSRF disabled."""

    TESTING = True
    DEBUG = True
    SECRET_KEY = "test-secret-key-not-for-production"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    STRIPE_SECRET_KEY = "sk_test_fake"
    STRIPE_WEBHOOK_SECRET = "whsec_test_fake"
    STRIPE_PUBLISHABLE_KEY = "pk_test_fake"
    APP_BASE_URL = "http://localhost:5000"
    FRONTEND_URL = "http://localhost:5000"
    CURRENCY = "usd"
    SIGNUP_PRICE_CENTS = 2900
    TIP_MIN_DOLLARS = 5
    TIP_MAX_DOLLARS = 500
    PLATFORM_FEE_BPS = 1000
    STATS_TIMEZONE = "UTC"
    MAIL_USERNAME = None
    MAIL_PASSWORD = None
    MAIL_SUPPRESS_SEND = True
    WTF_CSRF_ENABLED = False  # disable CSRF for test forms
    RATELIMIT_ENABLED = False  # disable rate limiting in tests
    SESSION_COOKIE_SECURE = False
    REMEMBER_COOKIE_SECURE = False
    SERVER_NAME = "localhost"

    @staticmethod
    def validate():
        """Skip validation in test mode — everything is hardcoded."""
        pass


class ProdConfig(Config):
    """Production."""

    DEBUG = False
    SESSION_COOKIE_SECURE = True
    REMEMBER_COOKIE_SECURE = True


config_by_name = {
    "development": DevConfig,
    "production": ProdConfig,
    "testing": TestConfig,
}
