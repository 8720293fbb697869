from datetime import datetime, timedelta

import pytest

from marketplace.errors import NotFound
from marketplace.services.trial_service import TrialService

NOW = datetime(2026, 1, 1, 12, 0)


def record(email="owner@example.com", user_type="business", **kwargs):
    return TrialService.record_trial_usage(email=email, user_type=user_type, now=NOW, **kwargs)


def test_new_email_is_eligible(app):
    result = TrialService.check_trial_eligibility("new@example.com", "business")

    assert result.eligible is True
    assert result.reason is None


def test_reused_email_is_rejected(app):
    record()

    result = TrialService.check_trial_eligibility("owner@example.com", "vendor")

    assert result.eligible is False
    assert "email" in result.reason


def test_reused_company_number_only_checked_for_business(app):
    record(company_number="12345678")

    business = TrialService.check_trial_eligibility("a@example.com", "business", company_number="12345678")
    vendor = TrialService.check_trial_eligibility("b@example.com", "vendor", company_number="12345678")

    assert business.eligible is False
    assert "company" in business.reason
    assert vendor.eligible is True


def test_reused_vat_number_is_rejected(app):
    record(vat_number="GB123456789")

    result = TrialService.check_trial_eligibility("c@example.com", "vendor", vat_number="GB123456789")

    assert result.eligible is False
    assert "VAT" in result.reason


def test_reused_utr_is_rejected(app):
    record(utr_number="1234567890")

    result = TrialService.check_trial_eligibility("d@example.com", "vendor", utr_number="1234567890")

    assert result.eligible is False
    assert "UTR" in result.reason


def test_record_trial_usage_sets_thirty_day_window(app):
    history = record()

    assert history.trial_start_date == NOW
    assert history.trial_end_date == NOW + timedelta(days=30)


def test_trial_expiry(app, make_user):
    user = make_user(email="owner@example.com")
    record()

    assert TrialService.is_trial_expired(user.id, now=NOW + timedelta(days=29)) is False
    assert TrialService.is_trial_expired(user.id, now=NOW + timedelta(days=31)) is True


def test_free_users_never_expire(app, make_user):
    user = make_user(email="owner@example.com", user_type="free")
    record()

    assert TrialService.is_trial_expired(user.id, now=NOW + timedelta(days=365)) is False


def test_user_without_trial_is_not_expired(app, make_user):
    user = make_user()

    assert TrialService.is_trial_expired(user.id) is False


def test_unknown_user_raises(app):
    with pytest.raises(NotFound):
        TrialService.is_trial_expired(999)
    with pytest.raises(NotFound):
        TrialService.can_delete_account(999)


def test_cannot_delete_account_during_trial(app, make_user):
    user = make_user(email="owner@example.com")
    record()

    allowed, reason = TrialService.can_delete_account(user.id, now=NOW + timedelta(days=10))

    assert allowed is False
    assert "trial" in reason


def test_cannot_delete_account_with_active_subscription(app, make_user, db):
    user = make_user(email="owner@example.com")
    record()
    user.subscription_active = True
    db.session.commit()

    allowed, reason = TrialService.can_delete_account(user.id, now=NOW + timedelta(days=40))

    assert allowed is False
    assert "cancel" in reason


def test_can_delete_account_after_trial_without_subscription(app, make_user):
    user = make_user(email="owner@example.com")
    record()

    assert TrialService.can_delete_account(user.id, now=NOW + timedelta(days=40)) == (True, None)
