"""Account model.

One row per paid signup. Created exactly once per completed signup
checkout session: stripe_session_id is the idempotency key and carries a
unique constraint, so a replayed or concurrent webhook cannot insert a
second account for the same payment.

Identity fields (email, username, Stripe references) are never changed
after creation; only password_hash and is_admin are mutable.
Flask-Login integration via UserMixin.
"""

import uuid

from flask_login import UserMixin

from linkjar.extensions import db


class Account(UserMixin, db.Model):
    __tablename__ = "accounts"

    EMAIL_MAX_LENGTH = 255

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email = db.Column(db.String(EMAIL_MAX_LENGTH), unique=True, nullable=False)
    username = db.Column(db.String(30), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    stripe_customer_id = db.Column(db.String(255), nullable=True)
    stripe_payment_intent_id = db.Column(db.String(255), nullable=True)
    stripe_session_id = db.Column(
        db.String(255), unique=True, nullable=True
    )  # e.g. "cs_live_..."; null only for operator-seeded accounts
    is_admin = db.Column(db.Boolean, default=False)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __table_args__ = (
        # Usernames are URLs: "Cool_Guy" and "cool_guy" are the same page.
        db.Index(
            "ix_accounts_username_lower", db.func.lower(username), unique=True
        ),
    )

    # --- Relationships ---
    # Deleting an account removes its profile (and, through the profile,
    # its tips). The FKs also carry ON DELETE CASCADE for raw SQL deletes.
    profile = db.relationship(
        "Profile",
        back_populates="account",
        uselist=False,
        cascade="all, delete-orphan",
    )
    audit_events = db.relationship(
        "AuditEvent",
        back_populates="account",
        lazy="dynamic",
        passive_deletes=True,  # ON DELETE SET NULL keeps the audit trail
    )

    def __repr__(self):
        return f"<Account {self.username}>"
