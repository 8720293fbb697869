import calendar
from datetime import datetime, timedelta, timezone

from marketplace.billing.state_machine import PaymentFrequency, SubscriptionTier

TRIAL_PERIOD = timedelta(days=30)

# Monthly base prices in pence
MONTHLY_BASE_PRICES = {
    SubscriptionTier.BUSINESS: 2999,
    SubscriptionTier.VENDOR: 4999,
}

# 10% off twelve months: floor(base * 12 * 0.9) in integer arithmetic
ANNUAL_DISCOUNT_NUMERATOR = 108
ANNUAL_DISCOUNT_DENOMINATOR = 10


def utcnow() -> datetime:
    """Naive UTC now, matching the naive DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def monthly_base_price(tier) -> int:
    return MONTHLY_BASE_PRICES[SubscriptionTier(tier)]


def calculate_price(tier, frequency) -> int:
    base = monthly_base_price(tier)
    if PaymentFrequency(frequency) == PaymentFrequency.ANNUAL:
        return base * ANNUAL_DISCOUNT_NUMERATOR // ANNUAL_DISCOUNT_DENOMINATOR
    return base


def add_months(dt: datetime, months: int) -> datetime:
    """
    Calendar month arithmetic. Clamps to the last day of the target month,
    so Jan 31 + 1 month is the last day of February.
    """
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def compute_period(start: datetime, frequency):
    """
    Returns (trial_end_date, end_date) for a subscription starting at start.
    """
    trial_end = start + TRIAL_PERIOD
    if PaymentFrequency(frequency) == PaymentFrequency.ANNUAL:
        end = add_months(trial_end, 12)
    else:
        end = add_months(trial_end, 1)
    return trial_end, end
