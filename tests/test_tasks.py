from datetime import timedelta

from marketplace.billing.pricing import utcnow
from marketplace.billing.state_machine import SubscriptionStatus
from marketplace.models import Subscription
from marketplace.tasks.subscription_tasks import process_trial_ends


def make_trial(db, user, trial_end_date, ref):
    subscription = Subscription(
        user_id=user.id,
        tier="business",
        status=SubscriptionStatus.TRIAL.value,
        payment_method="stripe",
        payment_frequency="monthly",
        start_date=trial_end_date - timedelta(days=30),
        trial_end_date=trial_end_date,
        end_date=trial_end_date + timedelta(days=31),
        price=2999,
        stripe_subscription_id=ref,
    )
    db.session.add(subscription)
    db.session.commit()
    return subscription.id


def test_process_trial_ends_task_activates_due_trials(app, db, provider, make_user):
    now = utcnow()
    due_id = make_trial(db, make_user(subscription_active=True), now - timedelta(hours=1), "sub_due")
    future_id = make_trial(db, make_user(subscription_active=True), now + timedelta(days=5), "sub_future")

    activated = process_trial_ends()

    db.session.expire_all()
    assert activated == [due_id]
    assert db.session.get(Subscription, due_id).status == "active"
    assert db.session.get(Subscription, future_id).status == "trial"


def test_task_is_registered_with_celery(app):
    celery_app = app.extensions["celery"]

    assert "marketplace.tasks.subscription_tasks.process_trial_ends" in celery_app.tasks
    assert "process-trial-ends" in celery_app.conf.beat_schedule
