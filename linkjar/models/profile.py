"""Profile model.

The public link-in-bio page for an account (1:1). Created in the same
transaction as its Account during provisioning, with display_name
defaulting to the username. Only the tip jar fields matter to the
payment core; the rest is edited by the profile pages.
"""

import uuid

from linkjar.extensions import db


class Profile(db.Model):
    __tablename__ = "profiles"

    TIP_JAR_MESSAGE_MAX = 200

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    account_id = db.Column(
        db.String(36),
        db.ForeignKey("accounts.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    display_name = db.Column(db.String(100), nullable=True)
    bio = db.Column(db.Text, nullable=True)
    profile_image_url = db.Column(db.String(500), nullable=True)
    tip_jar_enabled = db.Column(db.Boolean, default=False, nullable=False)
    tip_jar_message = db.Column(db.String(200), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    account = db.relationship("Account", back_populates="profile")
    tips = db.relationship(
        "Tip",
        back_populates="profile",
        cascade="all, delete-orphan",
    )

    @property
    def accepts_tips(self):
        return bool(self.is_active and self.tip_jar_enabled)

    def __repr__(self):
        return f"<Profile {self.display_name}>"
