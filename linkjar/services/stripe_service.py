"""Stripe service — the only module that talks to Stripe.

Responsible for:
- Creating Stripe Checkout Sessions (one-time payments: signup fee, tips)
- Retrieving a Checkout Session (status polling fallback)
- Verifying webhook signatures and constructing the event

PaymentGateway holds no state besides its keys. One instance is built in
create_app() and stored in app.extensions["payment_gateway"]; nothing sets
the process-wide stripe.api_key, every call passes api_key explicitly.
"""

import json
import logging
from dataclasses import dataclass

import stripe
from flask import current_app

from linkjar.services.errors import GatewayUnavailable, InvalidAmount, SignatureInvalid

logger = logging.getLogger(__name__)

PURPOSE_SIGNUP = "signup"
PURPOSE_TIP = "tip"
PURPOSES = (PURPOSE_SIGNUP, PURPOSE_TIP)


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    redirect_url: str


class PaymentGateway:
    """Thin wrapper around Stripe hosted checkout and webhook verification."""

    def __init__(self, api_key, webhook_secret, tip_min_cents, tip_max_cents,
                 signup_product_name="Link-in-bio Profile"):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.tip_min_cents = tip_min_cents
        self.tip_max_cents = tip_max_cents
        self.signup_product_name = signup_product_name

    @classmethod
    def from_config(cls, config):
        return cls(
            api_key=config["STRIPE_SECRET_KEY"],
            webhook_secret=config["STRIPE_WEBHOOK_SECRET"],
            tip_min_cents=config["TIP_MIN_DOLLARS"] * 100,
            tip_max_cents=config["TIP_MAX_DOLLARS"] * 100,
            signup_product_name=config.get(
                "SIGNUP_PRODUCT_NAME", "Link-in-bio Profile"
            ),
        )

    def tip_amount_in_bounds(self, amount_cents):
        return self.tip_min_cents <= amount_cents <= self.tip_max_cents

    # ──────────────────────────────────────────────
    # Checkout Sessions
    # ──────────────────────────────────────────────

    def create_checkout_session(self, purpose, amount_cents, currency,
                                success_url, cancel_url, metadata=None,
                                customer_email=None, product_name=None):
        """Create a one-time payment Checkout Session.

        `purpose` is written into the session metadata so the webhook can
        route the completed session to the right engine.

        Returns a CheckoutSession (id + hosted checkout URL).
        Raises InvalidAmount for tips outside the configured bounds,
        GatewayUnavailable on any Stripe failure.
        """
        if purpose not in PURPOSES:
            raise ValueError(f"Unknown checkout purpose: {purpose!r}")
        if not isinstance(amount_cents, int) or amount_cents <= 0:
            raise InvalidAmount("Amount must be a positive whole number of cents")
        if purpose == PURPOSE_TIP and not self.tip_amount_in_bounds(amount_cents):
            raise InvalidAmount(
                f"Tip must be between {self.tip_min_cents // 100} and "
                f"{self.tip_max_cents // 100} {currency.upper()}"
            )

        session_metadata = {k: str(v) for k, v in (metadata or {}).items()}
        session_metadata["purpose"] = purpose

        if product_name is None:
            product_name = (
                self.signup_product_name if purpose == PURPOSE_SIGNUP else "Tip"
            )

        params = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": currency,
                        "product_data": {"name": product_name},
                        "unit_amount": amount_cents,
                    },
                    "quantity": 1,
                }
            ],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": session_metadata,
            # Mirror the metadata onto the PaymentIntent so it is visible
            # from the Stripe dashboard when reconciling refunds.
            "payment_intent_data": {"metadata": session_metadata},
        }
        if customer_email:
            params["customer_email"] = customer_email

        try:
            session = stripe.checkout.Session.create(api_key=self.api_key, **params)
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout session creation failed ({purpose}): {e}")
            raise GatewayUnavailable("Payment provider unavailable, please retry") from e

        logger.info(f"Created {purpose} checkout session {session.id}")
        return CheckoutSession(session_id=session.id, redirect_url=session.url)

    def retrieve_session(self, session_id):
        """Fetch a Checkout Session from Stripe as a plain dict.

        Raises GatewayUnavailable on Stripe failures.
        """
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.warning(f"Failed to retrieve checkout session {session_id}: {e}")
            raise GatewayUnavailable("Payment provider unavailable, please retry") from e
        return session.to_dict()

    # ──────────────────────────────────────────────
    # Webhook Verification
    # ──────────────────────────────────────────────

    def verify_event(self, payload, sig_header, secret=None):
        """Verify a Stripe webhook signature and construct the event.

        `payload` must be the raw request body exactly as received.
        stripe.Webhook.construct_event checks the HMAC-SHA256 signature
        (constant-time compare, timestamp tolerance) before it parses any
        JSON, so nothing in the payload is looked at until it is authentic.

        Returns the verified event as a plain dict (the authenticated body,
        parsed). Raises SignatureInvalid otherwise.
        """
        if not sig_header:
            raise SignatureInvalid("Missing signature")

        try:
            stripe.Webhook.construct_event(
                payload, sig_header, secret or self.webhook_secret
            )
        except stripe.SignatureVerificationError as e:
            raise SignatureInvalid("Invalid signature") from e
        except ValueError as e:
            # Authentic signature over a body that is not valid JSON/UTF-8.
            raise SignatureInvalid("Invalid payload") from e
        return json.loads(payload)


def init_payment_gateway(app):
    """Build the PaymentGateway from app config and register it."""
    app.extensions["payment_gateway"] = PaymentGateway.from_config(app.config)


def get_payment_gateway():
    """Return the PaymentGateway bound to the current app."""
    return current_app.extensions["payment_gateway"]
