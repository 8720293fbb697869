from datetime import datetime, timedelta

import pytest

from marketplace.billing.pricing import (
    add_months,
    calculate_price,
    compute_period,
    monthly_base_price,
)


@pytest.mark.parametrize("tier,frequency,expected", [
    ("business", "monthly", 2999),
    ("business", "annual", 32389),
    ("vendor", "monthly", 4999),
    ("vendor", "annual", 53989),
])
def test_calculate_price(tier, frequency, expected):
    assert calculate_price(tier, frequency) == expected


def test_annual_price_is_floor_of_discounted_year():
    for tier in ("business", "vendor"):
        base = monthly_base_price(tier)
        assert calculate_price(tier, "annual") == int(base * 12 * 9 / 10)


def test_unknown_tier_raises():
    with pytest.raises(ValueError):
        calculate_price("enterprise", "monthly")


def test_add_months_clamps_to_month_end():
    assert add_months(datetime(2026, 1, 31), 1) == datetime(2026, 2, 28)
    assert add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)
    assert add_months(datetime(2024, 2, 29), 12) == datetime(2025, 2, 28)


def test_add_months_crosses_year_boundary():
    assert add_months(datetime(2026, 12, 15, 8, 0), 1) == datetime(2027, 1, 15, 8, 0)


def test_compute_period_monthly():
    start = datetime(2026, 5, 1, 12, 0)

    trial_end, end = compute_period(start, "monthly")

    assert trial_end == start + timedelta(days=30)
    assert end == datetime(2026, 6, 30, 12, 0)


def test_compute_period_annual():
    start = datetime(2026, 5, 1, 12, 0)

    trial_end, end = compute_period(start, "annual")

    assert trial_end == datetime(2026, 5, 31, 12, 0)
    assert end == datetime(2027, 5, 31, 12, 0)
