import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from marketplace.billing.pricing import TRIAL_PERIOD, utcnow
from marketplace.errors import NotFound
from marketplace.extensions import db
from marketplace.models import TrialHistory, User

logger = logging.getLogger(__name__)


@dataclass
class TrialEligibility:
    eligible: bool
    reason: Optional[str] = None

    def to_dict(self):
        return {"eligible": self.eligible, "reason": self.reason}


class TrialService:
    """One free trial per email, company number, VAT number and UTR."""

    @staticmethod
    def check_trial_eligibility(
        email: str,
        user_type: str,
        company_number: Optional[str] = None,
        vat_number: Optional[str] = None,
        utr_number: Optional[str] = None,
    ) -> TrialEligibility:
        if TrialHistory.query.filter_by(email=email).first():
            return TrialEligibility(False, "This email has already been used for a trial period")

        if user_type == "business" and company_number:
            if TrialHistory.query.filter_by(company_number=company_number).first():
                return TrialEligibility(False, "This company has already used a trial period")

        if vat_number and TrialHistory.query.filter_by(vat_number=vat_number).first():
            return TrialEligibility(False, "This VAT number has already been used for a trial period")

        if utr_number and TrialHistory.query.filter_by(utr_number=utr_number).first():
            return TrialEligibility(False, "This UTR number has already been used for a trial period")

        return TrialEligibility(True)

    @staticmethod
    def record_trial_usage(
        email: str,
        user_type: str,
        company_number: Optional[str] = None,
        vat_number: Optional[str] = None,
        utr_number: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> TrialHistory:
        record = TrialService.new_trial_record(
            email, user_type, company_number, vat_number, utr_number, now=now
        )
        db.session.add(record)
        db.session.commit()
        logger.info("Trial usage recorded", extra={"email": email, "user_type": user_type})
        return record

    @staticmethod
    def new_trial_record(
        email: str,
        user_type: str,
        company_number: Optional[str] = None,
        vat_number: Optional[str] = None,
        utr_number: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> TrialHistory:
        """Unsaved history row, for callers that commit it in their own transaction."""
        start = now or utcnow()
        return TrialHistory(
            email=email,
            company_number=company_number,
            vat_number=vat_number,
            utr_number=utr_number,
            user_type=user_type,
            trial_start_date=start,
            trial_end_date=start + TRIAL_PERIOD,
        )

    @staticmethod
    def check_user_eligibility(user: User) -> TrialEligibility:
        return TrialService.check_trial_eligibility(
            email=user.email,
            user_type=user.user_type,
            company_number=user.company_number,
            vat_number=user.vat_number,
            utr_number=user.utr_number,
        )

    @staticmethod
    def is_trial_expired(user_id: int, now: Optional[datetime] = None) -> bool:
        user = _get_user(user_id)

        # Free accounts never have a trial to expire
        if user.user_type == "free":
            return False

        record = TrialHistory.query.filter_by(email=user.email).first()
        if record is None:
            return False

        return (now or utcnow()) > record.trial_end_date

    @staticmethod
    def can_delete_account(user_id: int, now: Optional[datetime] = None) -> Tuple[bool, Optional[str]]:
        user = _get_user(user_id)

        record = TrialHistory.query.filter_by(email=user.email).first()
        if record is not None and (now or utcnow()) <= record.trial_end_date:
            return False, (
                "Account cannot be deleted during trial period. "
                "Please wait until the trial expires or upgrade to a paid plan."
            )

        if user.subscription_active:
            return False, "Please cancel your subscription before deleting your account."

        return True, None


def _get_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found")
    return user
