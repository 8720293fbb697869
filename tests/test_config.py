import importlib
import sys
from unittest.mock import MagicMock

import pytest

from marketplace import create_app
from marketplace.config import (
    ConfigurationError,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    get_config,
)
from marketplace.config.feature_flags import FeatureFlags


def test_get_config_by_name():
    assert get_config("development") is DevelopmentConfig
    assert get_config("Production") is ProductionConfig
    assert get_config("testing") is TestingConfig


def test_get_config_falls_back_to_app_env(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")

    assert get_config() is TestingConfig


def test_get_config_rejects_unknown_env():
    with pytest.raises(ConfigurationError):
        get_config("staging")


def test_production_requires_secrets(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "SECRET_KEY", None)
    monkeypatch.setattr(ProductionConfig, "STRIPE_SECRET_KEY", None)

    with pytest.raises(ConfigurationError, match="SECRET_KEY"):
        ProductionConfig.validate(FeatureFlags(ENABLE_STRIPE=True))


def test_production_without_stripe_only_needs_secret_key(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "SECRET_KEY", "prod-secret")
    monkeypatch.setattr(ProductionConfig, "STRIPE_SECRET_KEY", None)

    ProductionConfig.validate(FeatureFlags(ENABLE_STRIPE=False))


def test_feature_flags_read_environment(monkeypatch):
    monkeypatch.setenv("FEATURE_ENABLE_STRIPE", "false")

    assert FeatureFlags().ENABLE_STRIPE is False
    assert FeatureFlags().ENABLE_DIRECT_DEBIT is True


def test_create_app_uses_disabled_provider_when_stripe_off(monkeypatch):
    from marketplace.billing.payment_provider import DisabledPaymentProvider
    from marketplace.config.feature_flags import feature_flags

    monkeypatch.setattr(feature_flags, "ENABLE_STRIPE", False)

    app = create_app("testing")

    assert isinstance(app.extensions["payment_provider"], DisabledPaymentProvider)


def test_manage_loads_dotenv(monkeypatch):
    load = MagicMock()
    monkeypatch.setattr("dotenv.load_dotenv", load)
    monkeypatch.delitem(sys.modules, "manage", raising=False)

    importlib.import_module("manage")

    load.assert_called_once_with()
