from datetime import datetime

from flask import Blueprint, abort, jsonify, request

from marketplace.billing.state_machine import PaymentMethod
from marketplace.config.feature_flags import feature_flags
from marketplace.errors import InvalidPaymentInput, NotFound
from marketplace.extensions import db
from marketplace.models import User
from marketplace.services.subscription_service import get_lifecycle_manager
from marketplace.services.trial_service import TrialService

bp = Blueprint("subscriptions", __name__, url_prefix="/api")


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidPaymentInput("Request body must be a JSON object")
    return data


def _parse_datetime(value, field):
    if value in (None, ""):
        return None
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidPaymentInput(f"{field} must be an ISO 8601 datetime") from None


def _ensure_method_enabled(payment_method):
    if payment_method == PaymentMethod.STRIPE and not feature_flags.ENABLE_STRIPE:
        abort(503, "Card payments are temporarily disabled")
    if payment_method == PaymentMethod.DIRECT_DEBIT and not feature_flags.ENABLE_DIRECT_DEBIT:
        abort(503, "Direct debit is temporarily disabled")


@bp.route("/subscriptions", methods=["POST"])
def start_subscription():
    """
    Start a trial subscription.

    Returns:
        201: Subscription created
        400: Invalid payment input
        404: Unknown user
        409: Trial already used
        502: Payment provider failure
        503: Payment method disabled
    """
    data = _json_body()
    user_id = data.get("user_id")
    # bool is an int subclass; JSON true must not resolve to user 1
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        raise InvalidPaymentInput("user_id is required")

    _ensure_method_enabled(data.get("payment_method"))

    subscription = get_lifecycle_manager().start_subscription(
        user_id=user_id,
        tier=data.get("tier"),
        payment_method=data.get("payment_method"),
        payment_frequency=data.get("payment_frequency"),
        stripe_payment_method_id=data.get("stripe_payment_method_id"),
        bank_details=data.get("bank_details"),
    )
    return jsonify(subscription.to_dict()), 201


@bp.route("/subscriptions/<int:subscription_id>/trial-end", methods=["POST"])
def trial_end(subscription_id):
    get_lifecycle_manager().handle_trial_end(subscription_id)
    return jsonify({"status": "ok"})


@bp.route("/subscriptions/<int:subscription_id>/cancel", methods=["POST"])
def cancel(subscription_id):
    get_lifecycle_manager().cancel_subscription(subscription_id)
    return jsonify({"status": "cancelled"})


@bp.route("/subscriptions/<int:subscription_id>/pause", methods=["POST"])
def pause(subscription_id):
    data = _json_body()
    reason = data.get("reason")
    if not reason:
        raise InvalidPaymentInput("reason is required")

    get_lifecycle_manager().pause_subscription(
        subscription_id,
        reason=reason,
        resume_date=_parse_datetime(data.get("resume_date"), "resume_date"),
    )
    return jsonify({"status": "paused"})


@bp.route("/subscriptions/<int:subscription_id>/resume", methods=["POST"])
def resume(subscription_id):
    get_lifecycle_manager().resume_subscription(subscription_id)
    return jsonify({"status": "active"})


@bp.route("/users/<int:user_id>/subscription", methods=["GET"])
def current_subscription(user_id):
    """Current subscription status as mirrored on the user record."""
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found")

    latest = user.latest_subscription()
    return jsonify({
        "active": bool(user.subscription_active),
        "tier": user.subscription_tier,
        "ends_at": user.subscription_ends_at.isoformat() if user.subscription_ends_at else None,
        "user_type": user.user_type,
        "trial_expired": TrialService.is_trial_expired(user_id),
        "subscription": latest.to_dict() if latest else None,
    })


@bp.route("/trials/eligibility", methods=["POST"])
def trial_eligibility():
    data = _json_body()
    if not data.get("email") or not data.get("user_type"):
        raise InvalidPaymentInput("email and user_type are required")

    result = TrialService.check_trial_eligibility(
        email=data["email"],
        user_type=data["user_type"],
        company_number=data.get("company_number"),
        vat_number=data.get("vat_number"),
        utr_number=data.get("utr_number"),
    )
    return jsonify(result.to_dict())


@bp.route("/users/<int:user_id>/deletion-check", methods=["GET"])
def deletion_check(user_id):
    """
    Whether the account may be deleted right now.

    Returns:
        200: {allowed, reason}
        404: Unknown user
    """
    allowed, reason = TrialService.can_delete_account(user_id)
    return jsonify({"allowed": allowed, "reason": reason})
