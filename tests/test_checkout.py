"""Tests for opening checkout sessions and the status-poll fallback.

Stripe is mocked at stripe.checkout.Session; nothing leaves the process.
"""

from unittest.mock import MagicMock, patch

import pytest
import stripe

from linkjar.models.account import Account
from stripe_helpers import signup_event, stripe_session

SESSION_CREATE = "linkjar.services.stripe_service.stripe.checkout.Session.create"
SESSION_RETRIEVE = "linkjar.services.stripe_service.stripe.checkout.Session.retrieve"


def _fake_session(session_id="cs_test_new"):
    return MagicMock(id=session_id, url=f"https://checkout.stripe.com/c/pay/{session_id}")


class TestSignupCheckout:

    @patch(SESSION_CREATE)
    def test_creates_session(self, mock_create, client):
        mock_create.return_value = _fake_session()

        resp = client.post("/api/checkout/signup", json={
            "email": "New@Example.com", "username": "cool_guy",
        })

        assert resp.status_code == 201
        data = resp.get_json()
        assert data["sessionId"] == "cs_test_new"
        assert data["redirectUrl"].startswith("https://checkout.stripe.com/")

        kwargs = mock_create.call_args.kwargs
        assert kwargs["api_key"] == "sk_test_fake"
        assert kwargs["mode"] == "payment"
        assert kwargs["customer_email"] == "new@example.com"
        assert kwargs["metadata"] == {
            "purpose": "signup", "username": "cool_guy", "email": "new@example.com",
        }
        price = kwargs["line_items"][0]["price_data"]
        assert price["unit_amount"] == 2900
        assert price["currency"] == "usd"
        assert "{CHECKOUT_SESSION_ID}" in kwargs["success_url"]

    @patch(SESSION_CREATE)
    def test_username_taken(self, mock_create, client, seed_data):
        resp = client.post("/api/checkout/signup", json={
            "email": "x@y.com", "username": "Creator",
        })
        assert resp.status_code == 409
        mock_create.assert_not_called()

    @pytest.mark.parametrize("email", ["creator@test.com", " Creator@Test.COM "])
    @patch(SESSION_CREATE)
    def test_email_already_registered(self, mock_create, client, seed_data, email):
        """A second profile for the same email would be paid for and then refused."""
        resp = client.post("/api/checkout/signup", json={
            "email": email, "username": "brand_new",
        })
        assert resp.status_code == 409
        assert "email" in resp.get_json()["error"]
        mock_create.assert_not_called()

    @patch(SESSION_CREATE)
    def test_email_longer_than_column(self, mock_create, client):
        email = "a" * 250 + "@b.com"
        resp = client.post("/api/checkout/signup", json={
            "email": email, "username": "cool_guy",
        })
        assert resp.status_code == 400
        mock_create.assert_not_called()

    @patch(SESSION_CREATE)
    def test_reserved_username(self, mock_create, client):
        resp = client.post("/api/checkout/signup", json={
            "email": "x@y.com", "username": "admin",
        })
        assert resp.status_code == 400
        assert "This username is not available" in resp.get_json()["errors"]
        mock_create.assert_not_called()

    @pytest.mark.parametrize("email", ["", "not-an-email", None])
    @patch(SESSION_CREATE)
    def test_bad_email(self, mock_create, client, email):
        resp = client.post("/api/checkout/signup", json={
            "email": email, "username": "cool_guy",
        })
        assert resp.status_code == 400
        mock_create.assert_not_called()

    def test_missing_body(self, client):
        resp = client.post("/api/checkout/signup", data="nope",
                           content_type="text/plain")
        assert resp.status_code == 400

    @patch(SESSION_CREATE)
    def test_gateway_failure_is_502(self, mock_create, client):
        mock_create.side_effect = stripe.APIConnectionError("network down")
        resp = client.post("/api/checkout/signup", json={
            "email": "x@y.com", "username": "cool_guy",
        })
        assert resp.status_code == 502
        assert Account.query.count() == 0


class TestTipCheckout:

    @pytest.mark.parametrize("amount", [4, 501, 0, -5, 10.5, "ten", True])
    @patch(SESSION_CREATE)
    def test_bad_amount_never_reaches_stripe(self, mock_create, client, seed_data, amount):
        resp = client.post("/api/tips/create-session", json={
            "profileId": seed_data["profile_id"], "amount": amount,
        })
        assert resp.status_code == 400
        mock_create.assert_not_called()

    @patch(SESSION_CREATE)
    def test_creates_session_in_cents(self, mock_create, client, seed_data):
        mock_create.return_value = _fake_session("cs_tip_new")

        resp = client.post("/api/tips/create-session", json={
            "profileId": seed_data["profile_id"],
            "amount": 10,
            "tipperEmail": "fan@example.com",
        })

        assert resp.status_code == 201
        assert resp.get_json()["sessionId"] == "cs_tip_new"
        kwargs = mock_create.call_args.kwargs
        price = kwargs["line_items"][0]["price_data"]
        assert price["unit_amount"] == 1000
        assert price["product_data"]["name"] == "Tip for The Creator"
        assert kwargs["metadata"] == {
            "purpose": "tip",
            "profile_id": seed_data["profile_id"],
            "tipper_email": "fan@example.com",
        }

    @pytest.mark.parametrize("amount", [5, 500, "25"])
    @patch(SESSION_CREATE)
    def test_bounds_inclusive(self, mock_create, client, seed_data, amount):
        mock_create.return_value = _fake_session()
        resp = client.post("/api/tips/create-session", json={
            "profileId": seed_data["profile_id"], "amount": amount,
        })
        assert resp.status_code == 201

    @patch(SESSION_CREATE)
    def test_tipper_email_longer_than_column(self, mock_create, client, seed_data):
        resp = client.post("/api/tips/create-session", json={
            "profileId": seed_data["profile_id"],
            "amount": 10,
            "tipperEmail": "a" * 250 + "@b.com",
        })
        assert resp.status_code == 400
        mock_create.assert_not_called()

    @patch(SESSION_CREATE)
    def test_disabled_tip_jar_is_404(self, mock_create, client, seed_data):
        resp = client.post("/api/tips/create-session", json={
            "profileId": seed_data["closed_profile_id"], "amount": 10,
        })
        assert resp.status_code == 404
        mock_create.assert_not_called()

    @patch(SESSION_CREATE)
    def test_unknown_profile_is_404(self, mock_create, client):
        resp = client.post("/api/tips/create-session", json={
            "profileId": "nope", "amount": 10,
        })
        assert resp.status_code == 404


class TestCheckoutStatus:

    def test_requires_session_id(self, client):
        assert client.get("/api/checkout/status").status_code == 400

    def test_already_provisioned(self, client, seed_data):
        resp = client.get("/api/checkout/status?session_id=cs_seed_creator")
        assert resp.get_json() == {"provisioned": True, "username": "creator"}

    @patch(SESSION_RETRIEVE)
    def test_fallback_provisions_once(self, mock_retrieve, client, post_webhook):
        event = signup_event("sess_poll", "cool_guy", "a@b.com")
        mock_retrieve.return_value = stripe_session(event)

        resp = client.get("/api/checkout/status?session_id=sess_poll")
        assert resp.get_json() == {"provisioned": True, "username": "cool_guy"}
        assert Account.query.count() == 1

        # the webhook arriving afterwards finds the account already there
        late = post_webhook(event)
        assert late.get_json()["status"] == "already_provisioned"
        assert Account.query.count() == 1

        # further polls answer from the database
        client.get("/api/checkout/status?session_id=sess_poll")
        mock_retrieve.assert_called_once()

    @patch(SESSION_RETRIEVE)
    def test_unpaid_session_not_provisioned(self, mock_retrieve, client):
        mock_retrieve.return_value = stripe_session(
            signup_event("sess_unpaid", payment_status="unpaid")
        )
        resp = client.get("/api/checkout/status?session_id=sess_unpaid")
        assert resp.get_json() == {"provisioned": False}
        assert Account.query.count() == 0

    @patch(SESSION_RETRIEVE)
    def test_gateway_failure_reports_pending(self, mock_retrieve, client):
        mock_retrieve.side_effect = stripe.APIConnectionError("network down")
        resp = client.get("/api/checkout/status?session_id=sess_x")
        assert resp.status_code == 200
        assert resp.get_json() == {"provisioned": False}
