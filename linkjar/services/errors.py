"""Payment pipeline exceptions.

Blueprints map these onto HTTP responses:

    SignatureInvalid    -> 400 (webhook rejected, nothing processed)
    InvalidAmount       -> 400
    ValidationRejected  -> 400 at checkout time
    UsernameTaken       -> 409
    EmailTaken          -> 409
    GatewayUnavailable  -> 502 (client may retry)

Duplicate webhook deliveries and uniqueness conflicts during provisioning
are not exceptions: the engines report them as result statuses.
"""


class PaymentError(Exception):
    """Base class for errors raised by the payment services."""

    status_code = 400

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class SignatureInvalid(PaymentError):
    """Webhook payload failed Stripe signature verification."""


class InvalidAmount(PaymentError):
    """Tip amount outside the configured bounds."""


class ValidationRejected(PaymentError):
    """Input that can never be provisioned (bad username, bad email)."""


class UsernameTaken(PaymentError):
    status_code = 409


class EmailTaken(PaymentError):
    """An account already uses this email; a second signup would be refused."""

    status_code = 409


class GatewayUnavailable(PaymentError):
    """Stripe could not be reached or refused the request."""

    status_code = 502
