import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from marketplace.billing.payment_provider import PaymentProvider
from marketplace.billing.pricing import calculate_price, compute_period, utcnow
from marketplace.billing.state_machine import (
    NO_TIER,
    MandateStatus,
    PaymentFrequency,
    PaymentMethod,
    SubscriptionStatus,
    SubscriptionTier,
    assert_transition,
    parse_choice,
)
from marketplace.billing.store import SubscriptionStore
from marketplace.errors import (
    InvalidPaymentInput,
    InvalidStateTransition,
    NotFound,
    TrialNotAvailable,
)
from marketplace.models import Subscription
from marketplace.services.trial_service import TrialService

logger = logging.getLogger(__name__)

BANK_DETAIL_FIELDS = ("account_holder", "sort_code", "account_number")


class SubscriptionLifecycleManager:
    """
    Creates, transitions and terminates subscriptions.

    This is the only place that changes Subscription.status or the owning
    user's mirror fields (subscription_active, subscription_tier,
    subscription_ends_at). Both are written in one store transaction.

    Provider calls always happen before the local write. If the provider
    call fails nothing is written locally. If the local write fails after
    a successful provider call the error is logged as
    billing.reconciliation_required and re-raised; no compensating call is
    made to the provider.
    """

    def __init__(
        self,
        store: SubscriptionStore,
        provider: PaymentProvider,
        price_ids: Dict[str, str],
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.provider = provider
        self.price_ids = price_ids
        self.clock = clock

    # ============ CREATION ============

    def start_subscription(
        self,
        user_id: int,
        tier: str,
        payment_method: str,
        payment_frequency: str,
        stripe_payment_method_id: Optional[str] = None,
        bank_details: Optional[dict] = None,
    ) -> Subscription:
        tier = parse_choice(SubscriptionTier, tier, InvalidPaymentInput, "tier")
        payment_method = parse_choice(PaymentMethod, payment_method, InvalidPaymentInput, "payment_method")
        payment_frequency = parse_choice(
            PaymentFrequency, payment_frequency, InvalidPaymentInput, "payment_frequency"
        )

        if payment_method == PaymentMethod.STRIPE and not stripe_payment_method_id:
            raise InvalidPaymentInput("Stripe payment method ID is required")
        if payment_method == PaymentMethod.DIRECT_DEBIT:
            _validate_bank_details(bank_details)

        user = self.store.get_user(user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")

        eligibility = TrialService.check_user_eligibility(user)
        if not eligibility.eligible:
            raise TrialNotAvailable(eligibility.reason)

        start_date = self.clock()
        trial_end_date, end_date = compute_period(start_date, payment_frequency)
        price = calculate_price(tier, payment_frequency)

        subscription = Subscription(
            user_id=user.id,
            tier=tier.value,
            status=SubscriptionStatus.TRIAL.value,
            payment_method=payment_method.value,
            payment_frequency=payment_frequency.value,
            start_date=start_date,
            trial_end_date=trial_end_date,
            end_date=end_date,
            price=price,
            auto_renew=True,
        )

        if payment_method == PaymentMethod.STRIPE:
            customer_id = self.provider.create_customer(stripe_payment_method_id)
            subscription.stripe_customer_id = customer_id
            subscription.stripe_subscription_id = self.provider.create_subscription(
                customer_id, self.price_ids[tier.value], trial_end_date
            )
        else:
            subscription.bank_mandate = _build_mandate(bank_details)

        with self._reconcile_on_failure("start_subscription", subscription.stripe_subscription_id):
            with self.store.transaction():
                self.store.add(subscription)
                self.store.add(TrialService.new_trial_record(
                    user.email,
                    user.user_type,
                    company_number=user.company_number,
                    vat_number=user.vat_number,
                    utr_number=user.utr_number,
                    now=start_date,
                ))
                user.subscription_active = True
                user.subscription_tier = tier.value
                user.subscription_ends_at = end_date

        logger.info(
            "Subscription started",
            extra={
                "subscription_id": subscription.id,
                "user_id": user.id,
                "tier": tier.value,
                "payment_method": payment_method.value,
                "payment_frequency": payment_frequency.value,
                "price": price,
            },
        )
        return subscription

    # ============ TRANSITIONS ============

    def handle_trial_end(self, subscription_id: int) -> None:
        subscription = self.store.get_subscription(subscription_id)
        if subscription is None or subscription.status != SubscriptionStatus.TRIAL:
            # Duplicate or late trigger
            logger.debug("Trial end ignored", extra={"subscription_id": subscription_id})
            return
        self._activate_trial(subscription)

    def _activate_trial(self, subscription: Subscription) -> None:
        with self.store.transaction():
            subscription.status = SubscriptionStatus.ACTIVE.value
            self.store.session.flush()

            user = self.store.get_user(subscription.user_id)
            if user is not None:
                user.subscription_active = subscription.is_live

        logger.info(
            "Trial ended, subscription active",
            extra={"subscription_id": subscription.id, "user_id": subscription.user_id},
        )

        if subscription.payment_method == PaymentMethod.DIRECT_DEBIT:
            # TODO: submit the first collection against the pending mandate
            # once a direct debit bureau integration exists.
            logger.info(
                "direct_debit.first_collection_due",
                extra={"subscription_id": subscription.id, "amount": subscription.price},
            )

    def cancel_subscription(self, subscription_id: int) -> None:
        subscription = self._get_or_raise(subscription_id)

        if subscription.status == SubscriptionStatus.CANCELLED:
            logger.info("Subscription already cancelled", extra={"subscription_id": subscription_id})
            return
        assert_transition(subscription.status, SubscriptionStatus.CANCELLED)

        if subscription.is_card_based and subscription.stripe_subscription_id:
            self.provider.cancel_subscription(subscription.stripe_subscription_id)

        with self._reconcile_on_failure("cancel_subscription", subscription.stripe_subscription_id):
            with self.store.transaction():
                subscription.status = SubscriptionStatus.CANCELLED.value
                subscription.auto_renew = False
                subscription.cancelled_at = self.clock()

                user = self.store.get_user(subscription.user_id)
                if user is not None:
                    user.subscription_active = False
                    user.subscription_tier = NO_TIER

        logger.info(
            "Subscription cancelled",
            extra={"subscription_id": subscription.id, "user_id": subscription.user_id},
        )

    def pause_subscription(
        self, subscription_id: int, reason: str, resume_date: Optional[datetime] = None
    ) -> None:
        subscription = self._get_or_raise(subscription_id)
        if subscription.status != SubscriptionStatus.ACTIVE:
            raise InvalidStateTransition("Only active subscriptions can be paused")

        if subscription.is_card_based and subscription.stripe_subscription_id:
            self.provider.pause_subscription(subscription.stripe_subscription_id, resume_date)

        with self._reconcile_on_failure("pause_subscription", subscription.stripe_subscription_id):
            with self.store.transaction():
                subscription.status = SubscriptionStatus.PAUSED.value
                subscription.paused_at = self.clock()
                subscription.resumes_at = resume_date
                subscription.pause_reason = reason

                user = self.store.get_user(subscription.user_id)
                if user is not None:
                    user.subscription_active = False

        logger.info(
            "Subscription paused",
            extra={"subscription_id": subscription.id, "reason": reason},
        )

    def resume_subscription(self, subscription_id: int) -> None:
        subscription = self._get_or_raise(subscription_id)
        if subscription.status != SubscriptionStatus.PAUSED:
            raise InvalidStateTransition("Only paused subscriptions can be resumed")

        if subscription.is_card_based and subscription.stripe_subscription_id:
            self.provider.resume_subscription(subscription.stripe_subscription_id)

        with self._reconcile_on_failure("resume_subscription", subscription.stripe_subscription_id):
            with self.store.transaction():
                subscription.status = SubscriptionStatus.ACTIVE.value
                subscription.paused_at = None
                subscription.resumes_at = None
                subscription.pause_reason = None

                user = self.store.get_user(subscription.user_id)
                if user is not None:
                    user.subscription_active = True

        logger.info("Subscription resumed", extra={"subscription_id": subscription.id})

    # ============ SCHEDULED ============

    def process_expired_trials(self, now: Optional[datetime] = None) -> List[int]:
        """
        Activate every trial whose trial_end_date has passed.
        Returns the ids that were transitioned.
        """
        now = now or self.clock()
        activated = []
        for subscription in self.store.due_trials(now):
            self._activate_trial(subscription)
            activated.append(subscription.id)

        logger.info(
            "Processed expired trials",
            extra={"count": len(activated), "subscription_ids": activated},
        )
        return activated

    # ============ HELPERS ============

    def _get_or_raise(self, subscription_id: int) -> Subscription:
        subscription = self.store.get_subscription(subscription_id)
        if subscription is None:
            raise NotFound(f"Subscription {subscription_id} not found")
        return subscription

    @contextmanager
    def _reconcile_on_failure(self, operation: str, provider_reference: Optional[str]):
        try:
            yield
        except SQLAlchemyError:
            if provider_reference:
                logger.error(
                    "billing.reconciliation_required",
                    extra={
                        "operation": operation,
                        "stripe_subscription_id": provider_reference,
                    },
                )
            raise


def _validate_bank_details(bank_details: Optional[dict]) -> None:
    if not bank_details:
        raise InvalidPaymentInput("Bank details are required for direct debit")
    if not isinstance(bank_details, dict):
        raise InvalidPaymentInput("Bank details must be an object")

    for field in BANK_DETAIL_FIELDS:
        value = bank_details.get(field)
        if value is not None and not isinstance(value, str):
            raise InvalidPaymentInput(f"Bank detail {field} must be a string")

    missing = [field for field in BANK_DETAIL_FIELDS if not (bank_details.get(field) or "").strip()]
    if missing:
        raise InvalidPaymentInput(f"Bank details missing: {', '.join(missing)}")


def _build_mandate(bank_details: dict) -> dict:
    account_number = bank_details["account_number"].strip()
    return {
        "account_holder": bank_details["account_holder"].strip(),
        "sort_code": bank_details["sort_code"].strip(),
        "account_number_last4": account_number[-4:],
        "mandate_status": MandateStatus.PENDING.value,
    }
