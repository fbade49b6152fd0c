"""Audit event model.

Durable log of what the payment pipeline did with each paid checkout:
accounts provisioned, tips recorded, and, most importantly, every case
where money was taken but nothing could be provisioned (operator follow-up
and refund). `reference` holds the Stripe checkout session ID; the unique
(action, reference) pair means a replayed webhook logs its outcome once.
"""

import uuid
from datetime import datetime, timezone

from linkjar.extensions import db


class AuditEvent(db.Model):
    __tablename__ = "audit_events"

    # Actions that need a human to reconcile (customer paid, nothing created).
    NEEDS_FOLLOW_UP = ("signup.rejected", "tip.rejected", "tip.ignored")

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    account_id = db.Column(
        db.String(36),
        db.ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    action = db.Column(db.String(255), nullable=False)  # e.g. "signup.rejected"
    reference = db.Column(db.String(255), nullable=True)  # checkout session ID
    metadata_ = db.Column(
        "metadata", db.JSON, default=dict
    )  # extra context, named metadata_ to avoid the declarative attribute clash
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=db.func.now(),
    )

    __table_args__ = (
        db.UniqueConstraint(
            "action", "reference", name="uq_audit_action_reference"
        ),
    )

    # --- Relationships ---
    account = db.relationship("Account", back_populates="audit_events")

    def __repr__(self):
        return f"<AuditEvent {self.action} {self.reference}>"
