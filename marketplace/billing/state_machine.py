from enum import Enum

from marketplace.errors import InvalidStateTransition


class SubscriptionTier(str, Enum):
    BUSINESS = "business"
    VENDOR = "vendor"


class SubscriptionStatus(str, Enum):
    TRIAL = "trial"
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    STRIPE = "stripe"
    DIRECT_DEBIT = "direct_debit"


class PaymentFrequency(str, Enum):
    MONTHLY = "monthly"
    ANNUAL = "annual"


class MandateStatus(str, Enum):
    PENDING = "pending"


NO_TIER = "none"

# Nothing ever moves back into TRIAL and CANCELLED is terminal.
ALLOWED_TRANSITIONS = {
    SubscriptionStatus.TRIAL: {SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELLED},
    SubscriptionStatus.ACTIVE: {SubscriptionStatus.PAUSED, SubscriptionStatus.CANCELLED},
    SubscriptionStatus.PAUSED: {SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELLED},
    SubscriptionStatus.CANCELLED: set(),
}


def can_transition(current, target) -> bool:
    return SubscriptionStatus(target) in ALLOWED_TRANSITIONS[SubscriptionStatus(current)]


def assert_transition(current, target) -> None:
    """
    Raise InvalidStateTransition unless current -> target is allowed.
    """
    if not can_transition(current, target):
        raise InvalidStateTransition(
            f"Cannot move subscription from {SubscriptionStatus(current).value} "
            f"to {SubscriptionStatus(target).value}"
        )


def parse_choice(enum_cls, value, error_cls, field):
    """Coerce a raw string into enum_cls, raising error_cls with a readable message."""
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise error_cls(f"{field} must be one of: {allowed}") from None
