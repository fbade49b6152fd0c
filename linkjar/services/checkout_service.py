"""Checkout service — validates a checkout request and opens the Stripe session.

Everything checked here is checked again when the paid webhook arrives;
these checks exist so the visitor sees the error before paying.
"""

import logging
import re

from flask import current_app

from linkjar.models.account import Account
from linkjar.services import ledger
from linkjar.services.errors import (
    EmailTaken,
    InvalidAmount,
    UsernameTaken,
    ValidationRejected,
)
from linkjar.services.stripe_service import PURPOSE_SIGNUP, PURPOSE_TIP
from linkjar.services.username_service import validate_username

logger = logging.getLogger(__name__)

# Simple email regex — not exhaustive, just sanity-check
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
EMAIL_MAX_LENGTH = Account.EMAIL_MAX_LENGTH


def _is_valid_email(email):
    return len(email) <= EMAIL_MAX_LENGTH and bool(EMAIL_RE.match(email))


def _parse_whole_amount(raw):
    """Accept 10, "10" or 10.0 — reject fractions, bools and garbage."""
    if isinstance(raw, bool):
        raise InvalidAmount("Amount must be a whole number")
    if isinstance(raw, float):
        if not raw.is_integer():
            raise InvalidAmount("Amount must be a whole number")
        return int(raw)
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidAmount("Amount must be a whole number") from None


def start_signup_checkout(gateway, email, username):
    """Open a checkout session for the one-time signup fee.

    Returns a CheckoutSession. Raises ValidationRejected, UsernameTaken,
    EmailTaken, GatewayUnavailable.
    """
    config = current_app.config
    email = (email or "").strip().lower()
    username = (username or "").strip()

    if not email or not _is_valid_email(email):
        raise ValidationRejected("A valid email is required.")

    is_valid, errors = validate_username(username)
    if not is_valid:
        raise ValidationRejected("Invalid username", errors=errors)

    if ledger.get_account_by_username(username):
        raise UsernameTaken("Username already taken")
    if ledger.get_account_by_email(email):
        raise EmailTaken("An account with this email already exists")

    frontend_url = config["FRONTEND_URL"]
    return gateway.create_checkout_session(
        purpose=PURPOSE_SIGNUP,
        amount_cents=config["SIGNUP_PRICE_CENTS"],
        currency=config["CURRENCY"],
        success_url=f"{frontend_url}/?success=true&session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{frontend_url}/?canceled=true",
        customer_email=email,
        metadata={"username": username, "email": email},
    )


def start_tip_checkout(gateway, profile_id, amount, tipper_email=None):
    """Open a checkout session for a tip of `amount` whole currency units.

    Returns a CheckoutSession. Raises InvalidAmount, LookupError (no such
    profile / tip jar off), GatewayUnavailable.
    """
    config = current_app.config

    dollars = _parse_whole_amount(amount)
    if not config["TIP_MIN_DOLLARS"] <= dollars <= config["TIP_MAX_DOLLARS"]:
        raise InvalidAmount(
            f"Tip must be between {config['TIP_MIN_DOLLARS']} and "
            f"{config['TIP_MAX_DOLLARS']}"
        )

    profile = ledger.get_profile(profile_id)
    if profile is None or not profile.accepts_tips:
        raise LookupError("This profile is not accepting tips")

    tipper_email = (tipper_email or "").strip().lower() or None
    if tipper_email and not _is_valid_email(tipper_email):
        raise ValidationRejected("Tipper email is not valid.")

    metadata = {"profile_id": profile.id}
    if tipper_email:
        metadata["tipper_email"] = tipper_email

    creator_name = profile.display_name or profile.account.username
    frontend_url = config["FRONTEND_URL"]
    profile_url = f"{frontend_url}/u/{profile.account.username}"
    return gateway.create_checkout_session(
        purpose=PURPOSE_TIP,
        amount_cents=dollars * 100,
        currency=config["CURRENCY"],
        success_url=f"{profile_url}?tip=success&session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{profile_url}?tip=canceled",
        customer_email=tipper_email,
        metadata=metadata,
        product_name=f"Tip for {creator_name}",
    )
