import pytest
from datetime import datetime
from unittest.mock import MagicMock

from faker import Faker

from marketplace import create_app
from marketplace.billing.lifecycle import SubscriptionLifecycleManager
from marketplace.billing.payment_provider import StripePaymentProvider
from marketplace.billing.store import SubscriptionStore
from marketplace.extensions import db as _db
from marketplace.models import User

# Initialize Faker for generating test data
fake = Faker()

FIXED_NOW = datetime(2026, 1, 1, 9, 30, 0)

PRICE_IDS = {"business": "price_business", "vendor": "price_vendor"}


@pytest.fixture()
def app():
    """Create application for testing against an in-memory database"""
    app = create_app("testing")

    with app.app_context():
        _db.create_all()

        yield app

        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def db(app):
    return _db


@pytest.fixture()
def provider(app):
    """Payment provider double installed on the app"""
    provider = MagicMock(spec=StripePaymentProvider)
    provider.create_customer.return_value = "cus_test_123"
    provider.create_subscription.return_value = "sub_test_123"
    app.extensions["payment_provider"] = provider
    return provider


@pytest.fixture()
def store(db):
    return SubscriptionStore(db.session)


@pytest.fixture()
def manager(store, provider):
    return SubscriptionLifecycleManager(
        store=store,
        provider=provider,
        price_ids=PRICE_IDS,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture()
def make_user(db):
    """Factory for persisted users"""
    def _make_user(**overrides):
        data = {
            "email": fake.unique.email(),
            "user_type": "business",
            "business_name": fake.company(),
        }
        data.update(overrides)
        user = User(**data)
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture()
def bank_details():
    return {
        "account_holder": fake.name(),
        "sort_code": "20-00-00",
        "account_number": "55779911",
    }
