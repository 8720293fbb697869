from datetime import datetime

from sqlalchemy import CheckConstraint, Index

from marketplace.billing.state_machine import PaymentMethod, SubscriptionStatus
from marketplace.extensions import db


class Subscription(db.Model):
    __tablename__ = "subscriptions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    tier = db.Column(db.String(20), nullable=False)
    status = db.Column(db.String(20), nullable=False, index=True)
    payment_method = db.Column(db.String(20), nullable=False)
    payment_frequency = db.Column(db.String(20), nullable=False)

    # Period dates, naive UTC
    start_date = db.Column(db.DateTime, nullable=False)
    trial_end_date = db.Column(db.DateTime, nullable=False, index=True)
    end_date = db.Column(db.DateTime, nullable=False)

    # Minor currency units (pence)
    price = db.Column(db.Integer, nullable=False)
    auto_renew = db.Column(db.Boolean, nullable=False, default=True)

    # Card-based payload
    stripe_customer_id = db.Column(db.String(255), nullable=True)
    stripe_subscription_id = db.Column(db.String(255), unique=True, nullable=True, index=True)

    # Direct debit payload
    bank_mandate = db.Column(db.JSON, nullable=True)

    # Pause / cancellation details
    paused_at = db.Column(db.DateTime, nullable=True)
    resumes_at = db.Column(db.DateTime, nullable=True)
    pause_reason = db.Column(db.String(255), nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = db.relationship("User", back_populates="subscriptions")

    __table_args__ = (
        CheckConstraint(
            "status IN ('trial', 'active', 'paused', 'cancelled')",
            name="valid_subscription_status",
        ),
        CheckConstraint("price >= 0", name="non_negative_price"),
        CheckConstraint("trial_end_date > start_date", name="valid_trial_range"),
        Index("idx_subscription_status_trial_end", "status", "trial_end_date"),
    )

    @property
    def is_card_based(self):
        return self.payment_method == PaymentMethod.STRIPE

    @property
    def is_live(self):
        """Trial and active subscriptions grant access; paused and cancelled do not."""
        return self.status in (SubscriptionStatus.TRIAL, SubscriptionStatus.ACTIVE)

    @property
    def mandate_status(self):
        return (self.bank_mandate or {}).get("mandate_status")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "tier": self.tier,
            "status": self.status,
            "payment_method": self.payment_method,
            "payment_frequency": self.payment_frequency,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "trial_end_date": self.trial_end_date.isoformat() if self.trial_end_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "price": self.price,
            "auto_renew": self.auto_renew,
            "stripe_subscription_id": self.stripe_subscription_id,
            "mandate_status": self.mandate_status,
            "paused_at": self.paused_at.isoformat() if self.paused_at else None,
            "resumes_at": self.resumes_at.isoformat() if self.resumes_at else None,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
        }

    def __repr__(self):
        return f"<Subscription {self.id} user={self.user_id} {self.tier} {self.status}>"
