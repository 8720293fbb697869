import logging
from contextlib import contextmanager

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from marketplace.billing.state_machine import SubscriptionStatus
from marketplace.models import Subscription, User

logger = logging.getLogger(__name__)


class SubscriptionStore:
    """
    Persistence handle for subscriptions and their owning users.

    Wraps a SQLAlchemy session so the lifecycle manager never touches the
    global `db` directly and tests can hand in any session.
    """

    def __init__(self, session):
        self.session = session

    def get_subscription(self, subscription_id):
        return self.session.get(Subscription, subscription_id)

    def get_user(self, user_id):
        return self.session.get(User, user_id)

    def add(self, instance):
        self.session.add(instance)
        return instance

    def due_trials(self, now):
        stmt = (
            select(Subscription)
            .where(Subscription.status == SubscriptionStatus.TRIAL.value)
            .where(Subscription.trial_end_date <= now)
            .order_by(Subscription.trial_end_date)
        )
        return list(self.session.scalars(stmt))

    @contextmanager
    def transaction(self):
        """
        Commit everything written inside the block as one unit.
        Rolls back and re-raises on any database error.
        """
        try:
            yield self.session
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Subscription transaction rolled back")
            raise
