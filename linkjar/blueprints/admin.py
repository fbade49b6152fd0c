"""Admin blueprint — /api/admin/*

Operator view of paid checkouts that could not be turned into an
account or a tip. Each entry needs a manual refund or fix-up in Stripe.
"""

from flask import Blueprint, jsonify

from linkjar.decorators import admin_required
from linkjar.services.reconciliation_service import list_unprovisioned

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.route("/unprovisioned")
@admin_required
def unprovisioned():
    return jsonify({
        "events": [
            {
                "id": event.id,
                "action": event.action,
                "sessionId": event.reference,
                "details": event.metadata_ or {},
                "createdAt": event.created_at.isoformat() if event.created_at else None,
            }
            for event in list_unprovisioned()
        ]
    })
