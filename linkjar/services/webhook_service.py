"""Webhook service — routes verified Stripe events to the payment engines.

Only called after signature verification. Whatever happens in here, the
webhook endpoint answers 200: Stripe just needs to know the event arrived.
Failures that leave a customer charged without an account or tip are
recorded as audit events by the engines for manual follow-up.

Handled event types:
- checkout.session.completed
- checkout.session.async_payment_succeeded  (delayed payment methods)
Everything else is acknowledged and ignored.
"""

import logging

from linkjar.extensions import db
from linkjar.services import provisioning_service, tip_service
from linkjar.services.email_service import send_account_created_email
from linkjar.services.stripe_service import PURPOSE_SIGNUP, PURPOSE_TIP

logger = logging.getLogger(__name__)

PAID_STATUSES = ("paid", "no_payment_required")


def handle_webhook_event(event):
    """Process a verified Stripe event.

    Returns a short status string for the acknowledgement body.
    """
    event_id = event.get("id")
    event_type = event.get("type")

    handlers = {
        "checkout.session.completed": _handle_checkout_completed,
        "checkout.session.async_payment_succeeded": _handle_checkout_completed,
    }

    handler = handlers.get(event_type)
    if handler is None:
        logger.info(f"Ignoring webhook event {event_id} ({event_type})")
        return "ignored"

    session = (event.get("data") or {}).get("object") or {}
    try:
        return handler(session)
    except Exception as e:
        # Still acknowledged: a 5xx would only make Stripe redeliver into
        # the same failure. The session ID in the log is enough to replay.
        db.session.rollback()
        logger.error(
            f"Error handling {event_type} {event_id} "
            f"(session {session.get('id')}): {e}",
            exc_info=True,
        )
        return "error"


def _handle_checkout_completed(session):
    session_id = session.get("id")
    payment_status = session.get("payment_status")
    purpose = (session.get("metadata") or {}).get("purpose")

    if payment_status not in PAID_STATUSES:
        # Async payment methods complete the session before the money
        # arrives; async_payment_succeeded follows once it does.
        logger.info(f"Session {session_id} completed but not paid ({payment_status}), waiting")
        return "awaiting_payment"

    if purpose == PURPOSE_SIGNUP:
        return complete_signup(session).status
    if purpose == PURPOSE_TIP:
        return tip_service.record_tip(session).status

    logger.warning(f"Session {session_id} has unknown purpose {purpose!r}, ignoring")
    return "ignored"


def complete_signup(session):
    """Provision the account and hand the one-time password to the notifier.

    Shared by the webhook and the checkout status fallback so both paths
    go through the same idempotent engine.
    """
    result = provisioning_service.provision_account(session)
    if result.status == provisioning_service.PROVISIONED:
        send_account_created_email(
            result.email, result.username, result.temporary_password
        )
    return result
