"""Checkout blueprint — /api/checkout/*

Signup checkout for new profiles. Public JSON API (CSRF-exempt).

Routes:
- POST /api/checkout/signup  — validate username, create Checkout Session
- GET  /api/checkout/status  — polled by the success page until the
                               account exists
"""

import logging

from flask import Blueprint, jsonify, request

from linkjar.extensions import limiter
from linkjar.services import ledger
from linkjar.services.errors import GatewayUnavailable, PaymentError
from linkjar.services.checkout_service import start_signup_checkout
from linkjar.services.stripe_service import PURPOSE_SIGNUP, get_payment_gateway
from linkjar.services.webhook_service import PAID_STATUSES, complete_signup

logger = logging.getLogger(__name__)

checkout_bp = Blueprint("checkout", __name__, url_prefix="/api/checkout")


def payment_error_response(e):
    body = {"error": e.message}
    if e.errors:
        body["errors"] = e.errors
    return jsonify(body), e.status_code


# ──────────────────────────────────────────────
# POST /api/checkout/signup
# ──────────────────────────────────────────────

@checkout_bp.route("/signup", methods=["POST"])
@limiter.limit("10 per minute")
def create_signup_session():
    """Create a Stripe Checkout Session for the one-time signup fee.

    Expects: { email, username }
    Returns: 201 { sessionId, redirectUrl }
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Invalid request."}), 400

    try:
        session = start_signup_checkout(
            get_payment_gateway(),
            email=data.get("email"),
            username=data.get("username"),
        )
    except PaymentError as e:
        return payment_error_response(e)

    return jsonify({
        "sessionId": session.session_id,
        "redirectUrl": session.redirect_url,
    }), 201


# ──────────────────────────────────────────────
# GET /api/checkout/status?session_id=...
# ──────────────────────────────────────────────

@checkout_bp.route("/status")
@limiter.limit("60 per minute")
def checkout_status():
    """JSON endpoint polled by the success page.

    If the webhook hasn't arrived yet, fetch the session from Stripe and,
    when it is paid, run the same idempotent provisioning the webhook
    would. Whichever path gets there first creates the account; the
    other sees already_provisioned.
    """
    session_id = request.args.get("session_id")
    if not session_id:
        return jsonify({"error": "session_id is required"}), 400

    account = ledger.get_account_by_session(session_id)
    if account:
        return jsonify({"provisioned": True, "username": account.username})

    try:
        session = get_payment_gateway().retrieve_session(session_id)
    except GatewayUnavailable:
        return jsonify({"provisioned": False})

    metadata = session.get("metadata") or {}
    if (
        metadata.get("purpose") != PURPOSE_SIGNUP
        or session.get("payment_status") not in PAID_STATUSES
    ):
        return jsonify({"provisioned": False})

    logger.info(f"Provisioning session {session_id} from status poll")
    result = complete_signup(session)
    if result.account_id:
        return jsonify({"provisioned": True, "username": result.username})
    return jsonify({"provisioned": False, "reason": result.reason})
