"""Auth blueprint — /auth/*

Session login for profile owners with the credentials issued at
provisioning. Password changes live with the profile pages.
"""

import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from werkzeug.security import check_password_hash

from linkjar.extensions import limiter
from linkjar.services import ledger

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


# ──────────────────────────────────────────────
# POST /auth/login
# ──────────────────────────────────────────────

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("10 per minute")
def login():
    """Log in with username or email + password.

    Expects: { username | email, password }
    """
    data = request.get_json(silent=True) or {}
    identifier = (data.get("username") or data.get("email") or "").strip()
    password = data.get("password") or ""

    if not identifier or not password:
        return jsonify({"error": "Username/email and password are required"}), 400

    if "@" in identifier:
        account = ledger.get_account_by_email(identifier)
    else:
        account = ledger.get_account_by_username(identifier)

    if (
        account is None
        or not account.is_active
        or not check_password_hash(account.password_hash, password)
    ):
        logger.info(f"Failed login for {identifier!r}")
        return jsonify({"error": "Invalid credentials"}), 401

    login_user(account)
    return jsonify({
        "id": account.id,
        "username": account.username,
        "profileId": account.profile.id if account.profile else None,
    })


# ──────────────────────────────────────────────
# POST /auth/logout
# ──────────────────────────────────────────────

@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logger.info(f"Logout {current_user.username}")
    logout_user()
    return jsonify({"ok": True})
