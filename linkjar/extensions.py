"""
Deferred extension instances.

Created here, bound to the app in create_app() via init_app().
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
csrf = CSRFProtect()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # No global limit — we apply per-route
    storage_uri="memory://",
)


@login_manager.unauthorized_handler
def unauthorized():
    """JSON 401 instead of a redirect — there is no HTML login page."""
    from flask import jsonify

    return jsonify({"error": "Authentication required"}), 401


@login_manager.user_loader
def load_account(account_id):
    """Load account by ID from session. Imports lazily to avoid circular deps."""
    from linkjar.models.account import Account

    return db.session.get(Account, account_id)
