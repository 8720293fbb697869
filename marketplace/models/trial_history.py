from datetime import datetime

from marketplace.extensions import db


class TrialHistory(db.Model):
    """One row per trial ever granted, keyed by the identifiers that may not reuse one."""

    __tablename__ = "trial_history"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), nullable=False, index=True)
    company_number = db.Column(db.String(20), nullable=True, index=True)
    vat_number = db.Column(db.String(20), nullable=True, index=True)
    utr_number = db.Column(db.String(20), nullable=True, index=True)
    user_type = db.Column(db.String(20), nullable=False)
    trial_start_date = db.Column(db.DateTime, nullable=False)
    trial_end_date = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
