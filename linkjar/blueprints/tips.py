"""Tips blueprint — /api/tips/*, /api/profile/tip-jar

Routes:
- POST /api/tips/create-session             — public: start a tip checkout
- GET  /api/tips/monthly-stats/<profile_id> — public: this month's totals
- GET  /api/tips/history                    — owner: recent tips + earnings
- PUT  /api/profile/tip-jar                 — owner: toggle tip jar / message
"""

import logging

from flask import Blueprint, current_app, g, jsonify, request

from linkjar.decorators import profile_owner_required
from linkjar.extensions import csrf, db, limiter
from linkjar.models.profile import Profile
from linkjar.models.tip import cents_to_major
from linkjar.services import ledger
from linkjar.services.checkout_service import start_tip_checkout
from linkjar.services.errors import PaymentError
from linkjar.services.stats_service import monthly_stats
from linkjar.services.stripe_service import get_payment_gateway

logger = logging.getLogger(__name__)

tips_bp = Blueprint("tips", __name__, url_prefix="/api")

TIP_HISTORY_LIMIT = 50


# ──────────────────────────────────────────────
# POST /api/tips/create-session
# ──────────────────────────────────────────────

@tips_bp.route("/tips/create-session", methods=["POST"])
@csrf.exempt
@limiter.limit("20 per minute")
def create_tip_session():
    """Create a Stripe Checkout Session for a tip.

    Expects: { profileId, amount, tipperEmail (optional) }
             amount is in whole currency units (5-500 by default).
    Returns: 201 { sessionId, redirectUrl }
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Invalid request."}), 400

    try:
        session = start_tip_checkout(
            get_payment_gateway(),
            profile_id=data.get("profileId"),
            amount=data.get("amount"),
            tipper_email=data.get("tipperEmail"),
        )
    except LookupError as e:
        return jsonify({"error": str(e)}), 404
    except PaymentError as e:
        return jsonify({"error": e.message}), e.status_code

    return jsonify({
        "sessionId": session.session_id,
        "redirectUrl": session.redirect_url,
    }), 201


# ──────────────────────────────────────────────
# GET /api/tips/monthly-stats/<profile_id>
# ──────────────────────────────────────────────

@tips_bp.route("/tips/monthly-stats/<profile_id>")
def tip_monthly_stats(profile_id):
    """Public tip counter for a profile page (current calendar month).

    totalAmount is in major units (dollars), as the tip jar widget shows
    it; totalAmountCents carries the exact figure. Zero tips -> zeros,
    not 404.
    """
    stats = monthly_stats(profile_id)
    return jsonify({
        "totalAmount": cents_to_major(stats.total_amount),
        "totalAmountCents": stats.total_amount,
        "tipCount": stats.tip_count,
        "currency": _currency(),
    })


# ──────────────────────────────────────────────
# GET /api/tips/history
# ──────────────────────────────────────────────

@tips_bp.route("/tips/history")
@profile_owner_required
def tip_history():
    """Owner dashboard: latest tips plus this month's earnings.

    Amounts are in major units; each tip also carries its cents fields.
    """
    tips = ledger.list_tips_for_profile(g.profile.id, limit=TIP_HISTORY_LIMIT)
    stats = monthly_stats(g.profile.id)
    return jsonify({
        "tips": [tip.to_dict() for tip in tips],
        "month": {
            "year": stats.year,
            "month": stats.month,
            "totalAmount": cents_to_major(stats.total_amount),
            "tipCount": stats.tip_count,
            "totalEarnings": cents_to_major(stats.total_earnings),
            "platformFee": cents_to_major(stats.platform_fee_total),
        },
        "currency": _currency(),
    })


# ──────────────────────────────────────────────
# PUT /api/profile/tip-jar
# ──────────────────────────────────────────────

@tips_bp.route("/profile/tip-jar", methods=["PUT"])
@profile_owner_required
def update_tip_jar():
    """Enable/disable the tip jar and set its message.

    Expects: { enabled: bool, message: str (optional, <= 200 chars) }
    """
    data = request.get_json(silent=True)
    if not data or not isinstance(data.get("enabled"), bool):
        return jsonify({"error": "enabled must be true or false"}), 400

    message = (data.get("message") or "").strip()
    if len(message) > Profile.TIP_JAR_MESSAGE_MAX:
        return jsonify({
            "error": f"Message must be {Profile.TIP_JAR_MESSAGE_MAX} characters or less"
        }), 400

    profile = g.profile
    profile.tip_jar_enabled = data["enabled"]
    profile.tip_jar_message = message or None
    db.session.commit()

    logger.info(f"Tip jar {'enabled' if profile.tip_jar_enabled else 'disabled'} for profile {profile.id}")
    return jsonify({
        "tipJarEnabled": profile.tip_jar_enabled,
        "tipJarMessage": profile.tip_jar_message,
    })


def _currency():
    return current_app.config["CURRENCY"]
