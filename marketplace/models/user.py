from datetime import datetime

from marketplace.extensions import db


class User(db.Model):
    __tablename__ = "users"

    # ========== IDENTIFICATION ==========
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    user_type = db.Column(db.String(20), nullable=False, default="free")
    business_name = db.Column(db.String(200), nullable=True)

    # ========== BUSINESS REGISTRATION ==========
    company_number = db.Column(db.String(20), unique=True, nullable=True)
    vat_number = db.Column(db.String(20), unique=True, nullable=True)
    utr_number = db.Column(db.String(20), unique=True, nullable=True)

    # ========== SUBSCRIPTION MIRROR ==========
    # Denormalized copy of the live subscription, written only by the
    # lifecycle manager in the same transaction as the subscription row.
    subscription_active = db.Column(db.Boolean, nullable=False, default=False)
    subscription_tier = db.Column(db.String(20), nullable=False, default="none")
    subscription_ends_at = db.Column(db.DateTime, nullable=True)

    # ========== TIMESTAMPS ==========
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    subscriptions = db.relationship(
        "Subscription",
        back_populates="user",
        lazy="dynamic",
    )

    def latest_subscription(self):
        from marketplace.models.subscription import Subscription

        return (
            self.subscriptions
            .order_by(Subscription.start_date.desc(), Subscription.id.desc())
            .first()
        )

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "user_type": self.user_type,
            "business_name": self.business_name,
            "subscription_active": self.subscription_active,
            "subscription_tier": self.subscription_tier,
            "subscription_ends_at": self.subscription_ends_at.isoformat() if self.subscription_ends_at else None,
        }

    def __repr__(self):
        return f"<User {self.id} {self.email}>"
