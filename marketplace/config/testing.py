from .base import BaseConfig


class TestingConfig(BaseConfig):
    """
    Test configuration: in-memory database, eager Celery, no real Stripe key.
    """

    TESTING = True
    SECRET_KEY = "test-secret-key"

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"

    STRIPE_SECRET_KEY = "sk_test_mock"

    CELERY = {
        "broker_url": "memory://",
        "result_backend": "cache+memory://",
        "task_always_eager": True,
        "task_ignore_result": True,
    }
