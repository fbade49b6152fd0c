"""
Custom route decorators for access control.

- profile_owner_required: ensures the account is logged in AND owns a
  profile; the profile is put on g.profile.
- admin_required: ensures the account is logged in AND has is_admin=True.
"""

from functools import wraps

from flask import abort, g
from flask_login import current_user, login_required


def profile_owner_required(f):
    """Require login + an existing profile for the current account."""

    @wraps(f)
    @login_required
    def decorated(*args, **kwargs):
        profile = current_user.profile
        if profile is None:
            abort(404)
        g.profile = profile
        return f(*args, **kwargs)

    return decorated


def admin_required(f):
    """Require login + is_admin flag."""

    @wraps(f)
    @login_required
    def decorated(*args, **kwargs):
        if not current_user.is_admin:
            abort(403)
        return f(*args, **kwargs)

    return decorated
