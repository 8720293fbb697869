import logging

from flask import current_app

from marketplace.billing.lifecycle import SubscriptionLifecycleManager
from marketplace.billing.payment_provider import DisabledPaymentProvider, StripePaymentProvider
from marketplace.billing.store import SubscriptionStore
from marketplace.config.feature_flags import feature_flags
from marketplace.extensions import db

logger = logging.getLogger(__name__)


def init_payment_provider(app, flags=feature_flags):
    """Build the payment provider once per app and keep it on app.extensions."""
    if flags.ENABLE_STRIPE:
        provider = StripePaymentProvider(
            api_key=app.config.get("STRIPE_SECRET_KEY"),
            max_network_retries=app.config.get("STRIPE_MAX_NETWORK_RETRIES", 0),
        )
    else:
        logger.warning("Stripe disabled, card subscriptions will be rejected")
        provider = DisabledPaymentProvider()

    app.extensions["payment_provider"] = provider
    return provider


def get_lifecycle_manager() -> SubscriptionLifecycleManager:
    """Lifecycle manager bound to the current app's session and provider."""
    return SubscriptionLifecycleManager(
        store=SubscriptionStore(db.session),
        provider=current_app.extensions["payment_provider"],
        price_ids=current_app.config["STRIPE_PRICE_IDS"],
    )
