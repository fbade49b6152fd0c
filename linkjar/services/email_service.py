"""
Email service for transactional mail.

Sends over SMTP from a background thread so webhook handling never waits
on the mail server. Used to deliver the one-time password of a freshly
provisioned account.

Usage:
    from linkjar.services.email_service import send_email

    send_email(
        to="user@example.com",
        subject="Hello",
        template="emails/account_created.html",
        context={"username": "jane"},
    )
"""

import logging
import smtplib
import threading
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from flask import current_app, render_template

logger = logging.getLogger(__name__)


def _send_smtp(app, msg):
    """Send an email via SMTP in a background thread (non-blocking)."""
    with app.app_context():
        host = app.config.get("MAIL_SMTP_HOST", "smtp.gmail.com")
        port = app.config.get("MAIL_SMTP_PORT", 587)
        username = app.config.get("MAIL_USERNAME")
        password = app.config.get("MAIL_PASSWORD")

        if not username or not password:
            logger.warning("Email not sent — MAIL_USERNAME or MAIL_PASSWORD not configured.")
            return

        try:
            with smtplib.SMTP(host, port, timeout=30) as server:
                server.ehlo()
                server.starttls()
                server.ehlo()
                server.login(username, password)
                server.send_message(msg)
            logger.info(f"Email sent to {msg['To']} — {msg['Subject']}")
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {msg['To']}: {e}")


def _build_message(app, to, subject, template, context, reply_to):
    from_name = app.config.get("MAIL_FROM_NAME", "linkjar")
    from_email = app.config.get("MAIL_FROM_ADDRESS") or app.config.get("MAIL_USERNAME", "")

    html_body = render_template(template, **context)

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{from_name} <{from_email}>"
    msg["To"] = to if isinstance(to, str) else ", ".join(to)

    if reply_to:
        msg["Reply-To"] = reply_to

    msg.attach(MIMEText(html_body, "html"))
    return msg


def send_email(to, subject, template, context=None, reply_to=None):
    """
    Send a templated HTML email.

    Args:
        to:        Recipient email address (str or list).
        subject:   Email subject line.
        template:  Path to Jinja2 HTML template (relative to templates/).
        context:   Dict of variables to pass to the template.
        reply_to:  Optional reply-to address.
    """
    app = current_app._get_current_object()
    msg = _build_message(app, to, subject, template, context or {}, reply_to)

    # Send in background thread so the request doesn't block
    thread = threading.Thread(target=_send_smtp, args=(app, msg))
    thread.daemon = True
    thread.start()


def send_account_created_email(email, username, temporary_password):
    """Deliver the one-time password for a new account.

    With MAIL_SUPPRESS_SEND on, nothing is sent. The password is not
    logged either.
    """
    app = current_app._get_current_object()
    if app.config.get("MAIL_SUPPRESS_SEND"):
        logger.info(f"Mail suppressed; account-created email for {username} not sent")
        return

    login_url = f"{app.config['FRONTEND_URL']}/login"
    send_email(
        to=email,
        subject=f"Your profile @{username} is ready",
        template="emails/account_created.html",
        context={
            "username": username,
            "temporary_password": temporary_password,
            "login_url": login_url,
            "profile_url": f"{app.config['FRONTEND_URL']}/u/{username}",
        },
    )
