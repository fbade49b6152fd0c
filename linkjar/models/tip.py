"""Tip model.

One row per completed tip checkout session. Tips are immutable: there is
no update path and no updated_at column. stripe_session_id is the
idempotency key (unique), and the CHECK constraint pins the split so
creator_share_cents + platform_fee_cents always equals amount_cents.
"""

import uuid
from datetime import datetime, timezone

from linkjar.extensions import db


def cents_to_major(cents):
    """Minor units to major units: 1000 -> 10, 1050 -> 10.5."""
    if cents % 100 == 0:
        return cents // 100
    return cents / 100


class Tip(db.Model):
    __tablename__ = "tips"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    profile_id = db.Column(
        db.String(36),
        db.ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount_cents = db.Column(db.Integer, nullable=False)
    creator_share_cents = db.Column(db.Integer, nullable=False)
    platform_fee_cents = db.Column(db.Integer, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="usd")
    tipper_email = db.Column(db.String(255), nullable=True)
    stripe_session_id = db.Column(
        db.String(255), unique=True, nullable=False
    )  # e.g. "cs_live_..."
    stripe_payment_intent_id = db.Column(db.String(255), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=db.func.now(),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_tips_amount_positive"),
        db.CheckConstraint(
            "creator_share_cents + platform_fee_cents = amount_cents",
            name="ck_tips_split_sums_to_amount",
        ),
    )

    # --- Relationships ---
    profile = db.relationship("Profile", back_populates="tips")

    def to_dict(self):
        return {
            "id": self.id,
            "amount_dollars": cents_to_major(self.amount_cents),
            "creator_amount": cents_to_major(self.creator_share_cents),
            "platform_fee": cents_to_major(self.platform_fee_cents),
            "amount_cents": self.amount_cents,
            "creator_share_cents": self.creator_share_cents,
            "platform_fee_cents": self.platform_fee_cents,
            "currency": self.currency,
            "tipper_email": self.tipper_email,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Tip {self.amount_cents} {self.currency} -> {self.profile_id}>"
