import logging
from datetime import datetime, timezone
from typing import Optional, Protocol

import stripe

from marketplace.errors import ExternalProviderError

logger = logging.getLogger(__name__)


class PaymentProvider(Protocol):
    """Operations the lifecycle manager needs from a recurring-billing gateway."""

    def create_customer(self, payment_method_id: str) -> str: ...

    def create_subscription(self, customer_id: str, price_id: str, trial_end: datetime) -> str: ...

    def cancel_subscription(self, subscription_ref: str) -> None: ...

    def pause_subscription(self, subscription_ref: str, resumes_at: Optional[datetime] = None) -> None: ...

    def resume_subscription(self, subscription_ref: str) -> None: ...


def to_epoch(dt: datetime) -> int:
    """Naive datetimes are treated as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


class StripePaymentProvider:
    """
    Stripe-backed PaymentProvider.

    Every StripeError is translated into ExternalProviderError. Calls are
    synchronous and are not retried unless max_network_retries is raised
    in config.
    """

    def __init__(self, api_key: str, max_network_retries: int = 0):
        stripe.api_key = api_key
        stripe.max_network_retries = max_network_retries
        logger.info(
            "Stripe client initialized",
            extra={
                "api_key_prefix": api_key[:8] + "..." if api_key else None,
                "max_retries": max_network_retries,
            },
        )

    def _call(self, operation, func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except stripe.StripeError as e:
            logger.error(
                f"Stripe {operation} failed",
                exc_info=True,
                extra={"operation": operation, "stripe_error": str(e), "stripe_code": e.code},
            )
            raise ExternalProviderError(
                f"Stripe {operation} failed: {e.user_message or e}",
                operation=operation,
                provider_code=e.code,
            ) from e

    def create_customer(self, payment_method_id: str) -> str:
        customer = self._call(
            "create_customer",
            stripe.Customer.create,
            payment_method=payment_method_id,
            invoice_settings={"default_payment_method": payment_method_id},
        )
        logger.info("Stripe customer created", extra={"customer_id": customer.id})
        return customer.id

    def create_subscription(self, customer_id: str, price_id: str, trial_end: datetime) -> str:
        subscription = self._call(
            "create_subscription",
            stripe.Subscription.create,
            customer=customer_id,
            items=[{"price": price_id}],
            trial_end=to_epoch(trial_end),
            payment_settings={
                "payment_method_types": ["card"],
                "save_default_payment_method": "on_subscription",
            },
            cancel_at_period_end=False,
        )
        logger.info(
            "Stripe subscription created",
            extra={
                "subscription_id": subscription.id,
                "customer_id": customer_id,
                "price_id": price_id,
            },
        )
        return subscription.id

    def cancel_subscription(self, subscription_ref: str) -> None:
        self._call("cancel_subscription", stripe.Subscription.cancel, subscription_ref)
        logger.info("Stripe subscription cancelled", extra={"subscription_id": subscription_ref})

    def pause_subscription(self, subscription_ref: str, resumes_at: Optional[datetime] = None) -> None:
        pause_collection = {"behavior": "void"}
        if resumes_at is not None:
            pause_collection["resumes_at"] = to_epoch(resumes_at)
        self._call(
            "pause_subscription",
            stripe.Subscription.modify,
            subscription_ref,
            pause_collection=pause_collection,
        )
        logger.info("Stripe subscription paused", extra={"subscription_id": subscription_ref})

    def resume_subscription(self, subscription_ref: str) -> None:
        # An empty string unsets pause_collection on the Stripe side
        self._call(
            "resume_subscription",
            stripe.Subscription.modify,
            subscription_ref,
            pause_collection="",
        )
        logger.info("Stripe subscription resumed", extra={"subscription_id": subscription_ref})


class DisabledPaymentProvider:
    """Used when card payments are switched off via FEATURE_ENABLE_STRIPE=false."""

    def _disabled(self, operation):
        raise ExternalProviderError(
            "Stripe is disabled via FEATURE_ENABLE_STRIPE=false",
            operation=operation,
            provider_code="stripe_disabled",
        )

    def create_customer(self, payment_method_id):
        self._disabled("create_customer")

    def create_subscription(self, customer_id, price_id, trial_end):
        self._disabled("create_subscription")

    def cancel_subscription(self, subscription_ref):
        self._disabled("cancel_subscription")

    def pause_subscription(self, subscription_ref, resumes_at=None):
        self._disabled("pause_subscription")

    def resume_subscription(self, subscription_ref):
        self._disabled("resume_subscription")
