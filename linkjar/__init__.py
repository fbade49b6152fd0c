import os
import logging
import secrets

import click
from flask import Flask, jsonify
from werkzeug.security import generate_password_hash

from linkjar.config import config_by_name
from linkjar.extensions import db, migrate, login_manager, csrf, limiter


def create_app(config_name=None, payment_gateway=None):
    """Application factory.

    `payment_gateway` replaces the Stripe-backed PaymentGateway built from
    config (tests pass a fake here).
    """

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    # --- Payment gateway (explicit instance, no global stripe.api_key) ---
    from linkjar.services.stripe_service import init_payment_gateway
    if payment_gateway is None:
        init_payment_gateway(app)
    else:
        app.extensions["payment_gateway"] = payment_gateway

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from linkjar import models  # noqa: F401

    # --- Register blueprints ---
    from linkjar.blueprints.auth import auth_bp
    from linkjar.blueprints.checkout import checkout_bp
    from linkjar.blueprints.tips import tips_bp
    from linkjar.blueprints.webhooks import webhooks_bp
    from linkjar.blueprints.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(checkout_bp)
    app.register_blueprint(tips_bp)
    app.register_blueprint(webhooks_bp)
    app.register_blueprint(admin_bp)

    # Exempt webhooks from CSRF — raw body needed for Stripe signature verification
    csrf.exempt(webhooks_bp)
    # Exempt signup checkout from CSRF — public API hit before any session exists
    csrf.exempt(checkout_bp)

    # --- Health check ---
    @app.route("/health")
    def health():
        return jsonify({"status": "OK"})

    # --- Error handlers (JSON API) ---
    @app.errorhandler(400)
    def bad_request(e):
        return jsonify({"error": "Bad request"}), 400

    @app.errorhandler(403)
    def forbidden(e):
        return jsonify({"error": "Forbidden"}), 403

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(429)
    def rate_limited(e):
        return jsonify({"error": "Too many requests"}), 429

    @app.errorhandler(500)
    def server_error(e):
        return jsonify({"error": "Internal server error"}), 500

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        # Control referrer information
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Permissions Policy (restrict browser features)
        response.headers["Permissions-Policy"] = (
            "camera=(), microphone=(), geolocation=(), payment=(self)"
        )
        # Strict Transport Security (only in production)
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("seed-admin")
    @click.option("--email", default="admin@linkjar.local", help="Admin email")
    @click.option("--username", default="operator", help="Admin username")
    @click.option("--password", default=None, help="Admin password (generated if omitted)")
    def seed_admin(email, username, password):
        """Create an operator account with the admin flag.

        Usage:
            flask seed-admin
            flask seed-admin --email ops@example.com --username ops
        """
        from linkjar.models.account import Account
        from linkjar.models.profile import Profile

        existing = Account.query.filter_by(email=email).first()
        if existing:
            if not existing.is_admin:
                existing.is_admin = True
                db.session.commit()
            click.echo(f"Admin account already exists: {email}")
            return

        password = password or secrets.token_urlsafe(12)
        admin = Account(
            email=email,
            username=username,
            password_hash=generate_password_hash(password),
            is_admin=True,
        )
        admin.profile = Profile(display_name=username, is_active=False)
        db.session.add(admin)
        db.session.commit()

        click.echo("")
        click.echo("=" * 60)
        click.echo("Admin account created")
        click.echo("=" * 60)
        click.echo(f"  Email:     {email}")
        click.echo(f"  Username:  {username}")
        click.echo(f"  Password:  {password}")
        click.echo("=" * 60)

    @app.cli.command("list-unprovisioned")
    def list_unprovisioned_command():
        """List paid checkouts that created no account or tip.

        Every line is a customer who was charged and needs a manual
        refund or fix-up in the Stripe dashboard.
        """
        from linkjar.services.reconciliation_service import list_unprovisioned

        events = list_unprovisioned()
        if not events:
            click.echo("Nothing to reconcile.")
            return

        for event in events:
            details = event.metadata_ or {}
            click.echo(
                f"{event.created_at:%Y-%m-%d %H:%M}  {event.action:<16} "
                f"{event.reference}  reason={details.get('reason')}  "
                f"amount={details.get('amount_total')}  "
                f"payment_intent={details.get('stripe_payment_intent_id')}"
            )
        click.echo(f"\n{len(events)} event(s) need follow-up.")
