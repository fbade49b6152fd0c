"""Webhooks blueprint — /stripe/webhooks

Receives Stripe webhook events. CSRF-exempt.
Raw body is required for signature verification.
"""

import logging

from flask import Blueprint, request, jsonify

from linkjar.services.errors import SignatureInvalid
from linkjar.services.stripe_service import get_payment_gateway
from linkjar.services.webhook_service import handle_webhook_event

logger = logging.getLogger(__name__)

webhooks_bp = Blueprint("webhooks", __name__, url_prefix="/stripe")


@webhooks_bp.route("/webhooks", methods=["POST"])
def stripe_webhook():
    """Receive and process Stripe webhook events.

    1. Get the raw body, byte for byte (nothing parses it first)
    2. Verify signature with STRIPE_WEBHOOK_SECRET -> 400 if it fails
    3. Pass to handle_webhook_event (idempotent per checkout session)
    4. Return 200 for every authentic event, whatever the outcome

    CSRF is exempted for this blueprint in create_app().
    """
    payload = request.get_data(cache=False)
    sig_header = request.headers.get("Stripe-Signature")

    if not sig_header:
        logger.warning("Webhook received without Stripe-Signature header")
        return jsonify({"error": "Missing signature"}), 400

    # --- Verify signature ---
    try:
        event = get_payment_gateway().verify_event(payload, sig_header)
    except SignatureInvalid as e:
        logger.warning(f"Webhook signature verification failed: {e}")
        return jsonify({"error": "Invalid signature"}), 400

    # --- Process event (idempotent) ---
    status = handle_webhook_event(event)
    return jsonify({"received": True, "status": status}), 200
