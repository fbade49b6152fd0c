"""Username rules for public profile URLs (/u/<username>).

Checked twice: when a signup checkout session is created (so the visitor
gets an error before paying) and again when the paid webhook arrives,
because the session metadata is the only thing provisioning trusts.
"""

import re

RESERVED_USERNAMES = frozenset([
    "admin", "administrator", "root", "api", "www", "mail", "email",
    "support", "help", "info", "contact", "about", "terms", "privacy",
    "login", "register", "signup", "signin", "logout", "dashboard",
    "profile", "user", "users", "account", "settings", "config",
    "official", "staff", "moderator", "webhook", "webhooks", "stripe",
    "null", "undefined", "true", "false", "test", "demo",
])

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30

_ALLOWED_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_CONSECUTIVE_SEPARATORS_RE = re.compile(r"[_-]{2,}")


def validate_username(username):
    """Check a requested username against every rule.

    Returns (is_valid, errors) where errors lists every rule that failed,
    so the signup form can show them all at once.
    """
    if not username or not isinstance(username, str):
        return False, ["Username is required"]

    errors = []

    if username.lower() in RESERVED_USERNAMES:
        errors.append("This username is not available")

    if len(username) < USERNAME_MIN_LENGTH:
        errors.append(
            f"Username must be at least {USERNAME_MIN_LENGTH} characters long"
        )
    if len(username) > USERNAME_MAX_LENGTH:
        errors.append(
            f"Username must be {USERNAME_MAX_LENGTH} characters or less"
        )

    if not _ALLOWED_RE.match(username):
        errors.append(
            "Username can only contain letters, numbers, underscores, and hyphens"
        )

    if not username[0].isascii() or not username[0].isalnum():
        errors.append("Username must start with a letter or number")
    if not username[-1].isascii() or not username[-1].isalnum():
        errors.append("Username must end with a letter or number")

    if _CONSECUTIVE_SEPARATORS_RE.search(username):
        errors.append("Username cannot have consecutive underscores or hyphens")

    return len(errors) == 0, errors


def is_valid_username(username):
    return validate_username(username)[0]
