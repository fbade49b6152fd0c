"""Tests for login and the owner dashboard endpoints.

Covers:
- POST /auth/login with username or email; bad credentials -> 401
- GET  /api/tips/history for the logged-in owner only
- PUT  /api/profile/tip-jar validation and persistence
"""

from datetime import datetime, timezone

from linkjar.extensions import db
from linkjar.models.profile import Profile
from linkjar.services.tip_service import record_tip
from stripe_helpers import login, session_of, tip_event


class TestLogin:

    def test_login_with_username(self, client, seed_data):
        resp = login(client, "creator", "creatorpass123")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["username"] == "creator"
        assert data["profileId"] == seed_data["profile_id"]

    def test_login_case_insensitive(self, client, seed_data):
        assert login(client, "CREATOR", "creatorpass123").status_code == 200

    def test_login_with_email(self, client, seed_data):
        resp = client.post("/auth/login", json={
            "email": "Creator@Test.com", "password": "creatorpass123",
        })
        assert resp.status_code == 200

    def test_wrong_password(self, client, seed_data):
        resp = login(client, "creator", "nope")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid credentials"

    def test_unknown_user(self, client, seed_data):
        assert login(client, "ghost", "whatever").status_code == 401

    def test_missing_fields(self, client):
        assert client.post("/auth/login", json={}).status_code == 400

    def test_logout(self, client, seed_data):
        login(client, "creator", "creatorpass123")
        assert client.post("/auth/logout").status_code == 200
        assert client.get("/api/tips/history").status_code == 401


class TestTipHistory:

    def test_requires_login(self, client, seed_data):
        resp = client.get("/api/tips/history")
        assert resp.status_code == 401

    def test_owner_sees_own_tips(self, client, seed_data):
        record_tip(session_of(tip_event("cs_1", seed_data["profile_id"], 1000)))
        record_tip(session_of(tip_event("cs_2", seed_data["profile_id"], 2500)))

        login(client, "creator", "creatorpass123")
        data = client.get("/api/tips/history").get_json()

        assert len(data["tips"]) == 2
        assert {t["amount_dollars"] for t in data["tips"]} == {10, 25}
        assert {t["creator_amount"] for t in data["tips"]} == {9, 22.5}
        assert {t["amount_cents"] for t in data["tips"]} == {1000, 2500}
        assert all(t["tipper_email"] is None for t in data["tips"])
        assert all(t["created_at"] for t in data["tips"])
        now = datetime.now(timezone.utc)
        assert (data["month"]["year"], data["month"]["month"]) == (now.year, now.month)
        assert data["month"]["totalAmount"] == 35
        assert data["month"]["tipCount"] == 2
        assert data["month"]["totalEarnings"] == 31.5
        assert data["month"]["platformFee"] == 3.5
        assert data["currency"] == "usd"

    def test_other_creator_sees_nothing(self, client, seed_data):
        record_tip(session_of(tip_event("cs_1", seed_data["profile_id"], 1000)))

        login(client, "closed_jar", "closedpass123")
        data = client.get("/api/tips/history").get_json()
        assert data["tips"] == []
        assert data["month"]["tipCount"] == 0


class TestTipJarSettings:

    def test_enable_with_message(self, client, seed_data):
        login(client, "closed_jar", "closedpass123")
        resp = client.put("/api/profile/tip-jar", json={
            "enabled": True, "message": "  Thanks for stopping by  ",
        })
        assert resp.status_code == 200
        assert resp.get_json() == {
            "tipJarEnabled": True, "tipJarMessage": "Thanks for stopping by",
        }
        profile = db.session.get(Profile, seed_data["closed_profile_id"])
        db.session.refresh(profile)
        assert profile.accepts_tips

    def test_disable_clears_message(self, client, seed_data):
        login(client, "creator", "creatorpass123")
        resp = client.put("/api/profile/tip-jar", json={"enabled": False})
        assert resp.get_json() == {"tipJarEnabled": False, "tipJarMessage": None}

    def test_enabled_must_be_bool(self, client, seed_data):
        login(client, "creator", "creatorpass123")
        resp = client.put("/api/profile/tip-jar", json={"enabled": "yes"})
        assert resp.status_code == 400

    def test_message_length_limit(self, client, seed_data):
        login(client, "creator", "creatorpass123")
        ok = client.put("/api/profile/tip-jar", json={
            "enabled": True, "message": "x" * 200,
        })
        too_long = client.put("/api/profile/tip-jar", json={
            "enabled": True, "message": "x" * 201,
        })
        assert ok.status_code == 200
        assert too_long.status_code == 400

    def test_requires_login(self, client, seed_data):
        resp = client.put("/api/profile/tip-jar", json={"enabled": True})
        assert resp.status_code == 401
