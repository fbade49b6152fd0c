"""Provisioning service — turns a paid signup checkout into an account.

Called with the Checkout Session object from a verified
checkout.session.completed webhook (or from the status-poll fallback).
The whole flow is idempotent on the Checkout Session ID:

    already_provisioned  an account exists for this session (replay)
    rejected             paid, but the username/email cannot be used;
                         logged as a signup.rejected audit event for a
                         manual refund, never retried automatically
    provisioned          account + profile committed together

The unique constraint on accounts.stripe_session_id is what actually
prevents double provisioning; the lookup up front only saves a round trip.
"""

import logging
import secrets
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash

from linkjar.extensions import db
from linkjar.models.account import Account
from linkjar.models.audit import AuditEvent
from linkjar.models.profile import Profile
from linkjar.services import ledger
from linkjar.services.username_service import validate_username

logger = logging.getLogger(__name__)

PROVISIONED = "provisioned"
ALREADY_PROVISIONED = "already_provisioned"
REJECTED = "rejected"

TEMP_PASSWORD_BYTES = 12


@dataclass
class ProvisioningResult:
    status: str
    account_id: str = None
    username: str = None
    email: str = None
    # Plaintext one-time password. Only set on PROVISIONED, handed to the
    # welcome notifier and never persisted.
    temporary_password: str = None
    reason: str = None


def _session_email(session, metadata):
    email = (metadata.get("email") or "").strip()
    if not email:
        details = session.get("customer_details") or {}
        email = (details.get("email") or "").strip()
    return email.lower()


def _reject(session_id, username, email, reason, session, errors=None):
    """Log a paid-but-unprovisionable signup for operator follow-up."""
    logger.error(
        f"Signup rejected for session {session_id} "
        f"(username={username!r}, email={email!r}): {reason}. "
        f"Customer has paid; manual refund required."
    )
    ledger.record_audit(
        "signup.rejected",
        reference=session_id,
        metadata={
            "reason": reason,
            "errors": errors or [],
            "username": username,
            "email": email,
            "amount_total": session.get("amount_total"),
            "stripe_customer_id": session.get("customer"),
            "stripe_payment_intent_id": session.get("payment_intent"),
        },
    )
    return ProvisioningResult(
        status=REJECTED, username=username, email=email, reason=reason
    )


def provision_account(session):
    """Create exactly one Account + Profile for a paid signup session.

    Returns a ProvisioningResult. Never raises for business outcomes;
    storage errors other than uniqueness conflicts propagate.
    """
    session_id = session.get("id")
    metadata = session.get("metadata") or {}
    username = (metadata.get("username") or "").strip()
    email = _session_email(session, metadata)

    if not session_id:
        raise ValueError("Checkout session has no id")

    # --- Idempotency fast path ---
    existing = ledger.get_account_by_session(session_id)
    if existing:
        logger.info(f"Session {session_id} already provisioned as {existing.username}")
        return ProvisioningResult(
            status=ALREADY_PROVISIONED,
            account_id=existing.id,
            username=existing.username,
            email=existing.email,
        )

    # --- Validate what the customer paid for ---
    is_valid, errors = validate_username(username)
    if not is_valid:
        return _reject(session_id, username, email, "invalid_username", session, errors)
    if not email:
        return _reject(session_id, username, email, "missing_email", session)
    if len(email) > Account.EMAIL_MAX_LENGTH:
        return _reject(session_id, username, email, "invalid_email", session)

    # --- Create account + profile atomically ---
    temporary_password = secrets.token_urlsafe(TEMP_PASSWORD_BYTES)
    account = Account(
        email=email,
        username=username,
        password_hash=generate_password_hash(temporary_password),
        stripe_customer_id=session.get("customer"),
        stripe_payment_intent_id=session.get("payment_intent"),
        stripe_session_id=session_id,
    )
    account.profile = Profile(display_name=username)
    db.session.add(account)
    db.session.add(AuditEvent(
        account=account,
        action="account.provisioned",
        reference=session_id,
        metadata_={
            "username": username,
            "amount_total": session.get("amount_total"),
        },
    ))

    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        logger.warning(f"Uniqueness conflict provisioning session {session_id}: {e.orig}")
        return _resolve_conflict(session, session_id, username, email)

    logger.info(f"Provisioned account {account.id} ({username}) for session {session_id}")
    return ProvisioningResult(
        status=PROVISIONED,
        account_id=account.id,
        username=username,
        email=email,
        temporary_password=temporary_password,
    )


def _resolve_conflict(session, session_id, username, email):
    """Work out which unique constraint fired after a failed insert."""
    winner = ledger.get_account_by_session(session_id)
    if winner:
        # A concurrent delivery of the same event got there first.
        logger.info(f"Session {session_id} provisioned by a concurrent delivery")
        return ProvisioningResult(
            status=ALREADY_PROVISIONED,
            account_id=winner.id,
            username=winner.username,
            email=winner.email,
        )

    if ledger.get_account_by_username(username):
        reason = "username_taken"
    elif ledger.get_account_by_email(email):
        reason = "email_taken"
    else:
        reason = "storage_conflict"
    return _reject(session_id, username, email, reason, session)
