"""Tip service — records a paid tip and splits it between creator and platform.

Called with the Checkout Session object of a completed tip checkout.
Idempotent on the Checkout Session ID (unique on tips.stripe_session_id):

    duplicate  a tip already exists for this session
    ignored    target profile missing, inactive or tip jar switched off
    rejected   amount outside the allowed range
    recorded   one Tip row committed

All arithmetic is in integer cents. The creator share is rounded
half-up and the platform fee is whatever remains, so the two always add
back up to the amount.
"""

import logging
from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import IntegrityError

from linkjar.extensions import db
from linkjar.models.account import Account
from linkjar.models.tip import Tip
from linkjar.services import ledger

logger = logging.getLogger(__name__)

RECORDED = "recorded"
DUPLICATE = "duplicate"
IGNORED = "ignored"
REJECTED = "rejected"

BPS_DENOMINATOR = 10_000


@dataclass
class TipResult:
    status: str
    tip_id: str = None
    reason: str = None


def compute_split(amount_cents, fee_bps):
    """Split a tip into (creator_share_cents, platform_fee_cents).

    creator_share = amount * (1 - fee_rate), rounded half-up to a whole
    cent; platform_fee = amount - creator_share.

    >>> compute_split(1000, 1000)
    (900, 100)
    >>> compute_split(555, 1000)
    (500, 55)
    """
    if amount_cents < 0:
        raise ValueError("amount_cents must not be negative")
    if not 0 <= fee_bps <= BPS_DENOMINATOR:
        raise ValueError("fee_bps must be between 0 and 10000")

    creator_share = (
        amount_cents * (BPS_DENOMINATOR - fee_bps) + BPS_DENOMINATOR // 2
    ) // BPS_DENOMINATOR
    return creator_share, amount_cents - creator_share


def _tip_bounds_cents(config):
    return config["TIP_MIN_DOLLARS"] * 100, config["TIP_MAX_DOLLARS"] * 100


def record_tip(session):
    """Persist exactly one Tip for a paid tip checkout session."""
    config = current_app.config
    session_id = session.get("id")
    metadata = session.get("metadata") or {}
    profile_id = metadata.get("profile_id")
    amount_cents = session.get("amount_total")

    if not session_id:
        raise ValueError("Checkout session has no id")

    # --- Idempotency fast path ---
    existing = ledger.get_tip_by_session(session_id)
    if existing:
        logger.info(f"Tip for session {session_id} already recorded ({existing.id})")
        return TipResult(status=DUPLICATE, tip_id=existing.id)

    audit_metadata = {
        "profile_id": profile_id,
        "amount_total": amount_cents,
        "stripe_payment_intent_id": session.get("payment_intent"),
    }

    # --- Target profile ---
    profile = ledger.get_profile(profile_id)
    if profile is None or not profile.accepts_tips:
        reason = "profile_not_found" if profile is None else "tip_jar_disabled"
        logger.warning(f"Tip session {session_id} ignored: {reason} (profile={profile_id})")
        ledger.record_audit(
            "tip.ignored", reference=session_id,
            metadata={**audit_metadata, "reason": reason},
        )
        return TipResult(status=IGNORED, reason=reason)

    # --- Re-check the amount; session creation already enforced it ---
    min_cents, max_cents = _tip_bounds_cents(config)
    if not isinstance(amount_cents, int) or not min_cents <= amount_cents <= max_cents:
        logger.error(
            f"Tip session {session_id} rejected: amount {amount_cents} outside "
            f"[{min_cents}, {max_cents}]"
        )
        ledger.record_audit(
            "tip.rejected", reference=session_id,
            metadata={**audit_metadata, "reason": "amount_out_of_bounds"},
        )
        return TipResult(status=REJECTED, reason="amount_out_of_bounds")

    creator_share, platform_fee = compute_split(
        amount_cents, config["PLATFORM_FEE_BPS"]
    )

    details = session.get("customer_details") or {}
    tipper_email = (
        metadata.get("tipper_email")
        or details.get("email")
        or session.get("customer_email")
        or None
    )
    if tipper_email and len(tipper_email) > Account.EMAIL_MAX_LENGTH:
        logger.warning(f"Tip session {session_id}: tipper email too long, storing none")
        tipper_email = None

    tip = Tip(
        profile_id=profile.id,
        amount_cents=amount_cents,
        creator_share_cents=creator_share,
        platform_fee_cents=platform_fee,
        currency=(session.get("currency") or config["CURRENCY"]).lower(),
        tipper_email=tipper_email,
        stripe_session_id=session_id,
        stripe_payment_intent_id=session.get("payment_intent"),
    )
    db.session.add(tip)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        existing = ledger.get_tip_by_session(session_id)
        logger.info(f"Tip for session {session_id} recorded by a concurrent delivery")
        return TipResult(status=DUPLICATE, tip_id=existing.id if existing else None)

    logger.info(
        f"Recorded tip {tip.id}: {amount_cents} -> profile {profile.id} "
        f"(creator {creator_share}, platform {platform_fee})"
    )
    return TipResult(status=RECORDED, tip_id=tip.id)
