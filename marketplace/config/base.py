import os


class ConfigurationError(Exception):
    """
    Raised when an invalid or unsupported configuration is requested.
    """
    pass


class BaseConfig:
    """
    Base configuration shared by all environments.
    """

    # Flask
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv("SECRET_KEY")

    # Application
    APP_NAME = "Business Marketplace"
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_REQUESTS = os.getenv("LOG_REQUESTS", "false").lower() == "true"

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///marketplace.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Stripe
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_MAX_NETWORK_RETRIES = int(os.getenv("STRIPE_MAX_NETWORK_RETRIES", "0"))
    STRIPE_PRICE_IDS = {
        "business": os.getenv("STRIPE_PRICE_BUSINESS", "price_business"),
        "vendor": os.getenv("STRIPE_PRICE_VENDOR", "price_vendor"),
    }

    # Celery
    CELERY = {
        "broker_url": os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        "result_backend": os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        "task_ignore_result": True,
        "timezone": "UTC",
        "enable_utc": True,
    }

    @classmethod
    def validate(cls, flags):
        """Hook for environment specific validation. No-op by default."""
        return None
