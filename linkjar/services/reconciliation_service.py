"""Reconciliation queue: paid checkouts that produced no account or tip.

Fed by the signup.rejected / tip.rejected / tip.ignored audit events the
engines write. Read by the admin API and the `flask list-unprovisioned`
command.
"""

from linkjar.models.audit import AuditEvent


def list_unprovisioned(limit=200):
    """Oldest first, so the longest-waiting customer is handled first."""
    return (
        AuditEvent.query
        .filter(AuditEvent.action.in_(AuditEvent.NEEDS_FOLLOW_UP))
        .order_by(AuditEvent.created_at.asc())
        .limit(limit)
        .all()
    )
