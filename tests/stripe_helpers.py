"""Builders for signed Stripe webhook payloads used across the tests."""

import hashlib
import hmac
import time

import stripe

WEBHOOK_SECRET = "whsec_test_fake"


def sign_payload(payload, secret=WEBHOOK_SECRET, timestamp=None):
    """Build a Stripe-Signature header for `payload` (bytes)."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.".encode("utf-8") + payload
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def checkout_event(session_id, purpose, metadata=None, amount_total=2900,
                   event_id=None, event_type="checkout.session.completed",
                   payment_status="paid", **session_fields):
    """Build a checkout.session.* event dict as Stripe would send it."""
    session = {
        "id": session_id,
        "object": "checkout.session",
        "mode": "payment",
        "payment_status": payment_status,
        "amount_total": amount_total,
        "currency": "usd",
        "customer": f"cus_{session_id}",
        "payment_intent": f"pi_{session_id}",
        "metadata": {"purpose": purpose, **(metadata or {})},
    }
    session.update(session_fields)
    return {
        "id": event_id or f"evt_{session_id}",
        "object": "event",
        "type": event_type,
        "data": {"object": session},
    }


def signup_event(session_id="sess_1", username="cool_guy", email="a@b.com", **kwargs):
    return checkout_event(
        session_id, "signup", {"username": username, "email": email}, **kwargs
    )


def tip_event(session_id, profile_id, amount_total=1000, **kwargs):
    return checkout_event(
        session_id, "tip", {"profile_id": profile_id},
        amount_total=amount_total, **kwargs
    )


def session_of(event):
    """The checkout session object inside an event."""
    return event["data"]["object"]


def login(client, username, password):
    return client.post(
        "/auth/login",
        json={"username": username, "password": password},
    )


def stripe_session(event):
    """The session inside an event as the SDK returns it from retrieve()."""
    return stripe.checkout.Session.construct_from(session_of(event), "sk_test_fake")
