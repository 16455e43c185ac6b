"""HTTP tests for the session endpoints under ``/auth``."""

from __future__ import annotations

import threading

import pytest
from snipvault.models import AuditEntry, RefreshToken, User
from snipvault.services._shared.errors import IdentityFailureReason
from sqlalchemy import select
from tests.helpers.utils import auth


def _entries(session, action):
    session.expire_all()
    return session.execute(
        select(AuditEntry).where(AuditEntry.action == action).order_by(AuditEntry.id)
    ).scalars().all()


class TestExchange:
    def test_returns_token_pair(self, client, identity_verifier, session):
        identity_verifier.allow("good", uid="uid-1", email="new@example.com", name="New User")

        resp = client.post("/auth/exchange", headers=auth("good"))

        assert resp.status_code == 200
        body = resp.get_json()
        assert set(body) == {"accessToken", "refreshToken", "expiresInSeconds"}
        assert body["expiresInSeconds"] == 900
        assert body["refreshToken"].startswith("rtk_")
        user = session.execute(select(User)).scalar_one()
        assert user.email == "new@example.com"

    def test_exchange_is_audited_without_secrets(self, sign_in, session):
        body = sign_in(uid="uid-2", email="audit@example.com")

        (entry,) = _entries(session, "exchange")
        assert entry.status == "success"
        assert entry.details == {"operation": "user_sync", "created": True}
        assert body["accessToken"] not in str(entry.response_snapshot)
        assert body["refreshToken"] not in str(entry.response_snapshot)

    def test_missing_assertion(self, client, session):
        resp = client.post("/auth/exchange")

        assert resp.status_code == 401
        assert resp.mimetype == "application/problem+json"
        assert resp.get_json()["code"] == "NO_TOKEN"
        (entry,) = _entries(session, "exchange")
        assert entry.status_code == 401

    @pytest.mark.parametrize(
        ("reason", "code"),
        [
            (IdentityFailureReason.EXPIRED, "TOKEN_EXPIRED"),
            (IdentityFailureReason.REVOKED, "TOKEN_REVOKED"),
            (IdentityFailureReason.MALFORMED, "INVALID_TOKEN"),
            (IdentityFailureReason.UNKNOWN, "INVALID_TOKEN"),
        ],
    )
    def test_rejected_assertion(self, client, identity_verifier, session, reason, code):
        identity_verifier.reject("bad", reason)

        resp = client.post("/auth/exchange", headers=auth("bad"))

        assert resp.status_code == 401
        problem = resp.get_json()
        assert problem["code"] == code
        assert "request_id" in problem
        assert session.execute(select(User)).first() is None
        assert _entries(session, "exchange")[0].status == "failure"

    def test_duplicate_email_conflicts(self, client, sign_in, identity_verifier):
        sign_in(uid="uid-a", email="taken@example.com")
        identity_verifier.allow("other", uid="uid-b", email="taken@example.com")

        resp = client.post("/auth/exchange", headers=auth("other"))

        assert resp.status_code == 409
        assert resp.get_json()["code"] == "DUPLICATE_EMAIL"


class TestRefresh:
    def test_rotates_via_body(self, client, sign_in):
        first = sign_in()

        resp = client.post("/auth/refresh", json={"refreshToken": first["refreshToken"]})

        assert resp.status_code == 200
        second = resp.get_json()
        assert second["refreshToken"] != first["refreshToken"]
        assert client.get("/auth/me", headers=auth(second["accessToken"])).status_code == 200

    def test_rotates_via_header(self, client, sign_in):
        first = sign_in()
        resp = client.post("/auth/refresh", headers=auth(first["refreshToken"]))
        assert resp.status_code == 200

    def test_replay_is_rejected(self, client, sign_in, session):
        first = sign_in()
        client.post("/auth/refresh", json={"refreshToken": first["refreshToken"]})

        resp = client.post("/auth/refresh", json={"refreshToken": first["refreshToken"]})

        assert resp.status_code == 401
        assert resp.get_json()["code"] == "INVALID_REFRESH_TOKEN"
        statuses = [e.status for e in _entries(session, "token_refresh")]
        assert statuses == ["success", "failure"]

    def test_unknown_and_missing(self, client):
        unknown = client.post("/auth/refresh", json={"refreshToken": "rtk_" + "f" * 64})
        assert unknown.status_code == 401
        assert unknown.get_json()["code"] == "INVALID_REFRESH_TOKEN"

        missing = client.post("/auth/refresh", json={})
        assert missing.status_code == 401
        assert missing.get_json()["code"] == "NO_TOKEN"

    @pytest.mark.parametrize("value", ["", 123, "rtk_" + "a" * 300, ["rtk_x"]])
    def test_malformed_body_token_is_invalid(self, client, session, value):
        resp = client.post("/auth/refresh", json={"refreshToken": value})

        assert resp.status_code == 401
        assert resp.get_json()["code"] == "INVALID_REFRESH_TOKEN"
        (entry,) = _entries(session, "token_refresh")
        assert entry.status == "failure"
        assert entry.details["code"] == "INVALID_REFRESH_TOKEN"

    def test_concurrent_refresh_has_one_winner(self, app, sign_in, session):
        bearer = sign_in()["refreshToken"]
        workers = 6
        barrier = threading.Barrier(workers)
        responses = []
        lock = threading.Lock()

        def _refresh():
            client = app.test_client()
            barrier.wait()
            resp = client.post("/auth/refresh", json={"refreshToken": bearer})
            with lock:
                responses.append((resp.status_code, resp.get_json()))

        threads = [threading.Thread(target=_refresh) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(status for status, _ in responses) == [200] + [401] * (workers - 1)
        assert all(
            body["code"] == "INVALID_REFRESH_TOKEN" for status, body in responses if status == 401
        )
        statuses = [e.status for e in _entries(session, "token_refresh")]
        assert statuses.count("success") == 1
        assert statuses.count("failure") == workers - 1
        session.expire_all()
        assert len(session.execute(select(RefreshToken)).scalars().all()) == 1

    def test_only_hash_is_persisted(self, sign_in, session):
        body = sign_in()
        row = session.execute(select(RefreshToken)).scalar_one()
        assert row.token_hash != body["refreshToken"]
        assert body["refreshToken"][4:] not in row.token_hash


class TestLogout:
    def test_logout_revokes_refresh_only(self, client, sign_in):
        body = sign_in()

        resp = client.post("/auth/logout", json={"refreshToken": body["refreshToken"]})

        assert resp.status_code == 200
        assert resp.get_json() == {"success": True, "revoked": True}
        refreshed = client.post("/auth/refresh", json={"refreshToken": body["refreshToken"]})
        assert refreshed.status_code == 401
        # Access tokens live out their TTL
        assert client.get("/auth/me", headers=auth(body["accessToken"])).status_code == 200

    def test_logout_is_idempotent(self, client, sign_in):
        body = sign_in()
        client.post("/auth/logout", json={"refreshToken": body["refreshToken"]})
        again = client.post("/auth/logout", json={"refreshToken": body["refreshToken"]})
        assert again.status_code == 200
        assert again.get_json() == {"success": True, "revoked": False}

    def test_logout_without_token(self, client, session):
        resp = client.post("/auth/logout")
        assert resp.status_code == 200
        assert resp.get_json()["revoked"] is False
        assert _entries(session, "logout")[0].status == "success"

    @pytest.mark.parametrize("value", ["", 123, "rtk_" + "a" * 300])
    def test_malformed_body_token_still_succeeds(self, client, sign_in, session, value):
        body = sign_in()

        resp = client.post("/auth/logout", json={"refreshToken": value})

        assert resp.status_code == 200
        assert resp.get_json() == {"success": True, "revoked": False}
        assert _entries(session, "logout")[0].status == "success"
        # The session that was signed in is untouched
        refreshed = client.post("/auth/refresh", json={"refreshToken": body["refreshToken"]})
        assert refreshed.status_code == 200

    def test_logout_all(self, client, identity_verifier, sign_in):
        a = sign_in(uid="uid-z", email="z@example.com")
        b = sign_in(uid="uid-z", email="z@example.com")

        resp = client.post("/auth/logout-all", headers=auth(a["accessToken"]))

        assert resp.status_code == 200
        assert resp.get_json() == {"success": True, "revoked": 2}
        for pair in (a, b):
            r = client.post("/auth/refresh", json={"refreshToken": pair["refreshToken"]})
            assert r.status_code == 401

    def test_logout_all_requires_access_token(self, client):
        resp = client.post("/auth/logout-all")
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "NO_TOKEN"


class TestMe:
    def test_profile(self, client, sign_in):
        body = sign_in(uid="uid-me", email="me@example.com", name="Me")
        resp = client.get("/auth/me", headers=auth(body["accessToken"]))
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["email"] == "me@example.com"
        assert data["display_name"] == "Me"

    def test_refresh_token_is_not_an_access_token(self, client, sign_in):
        body = sign_in()
        resp = client.get("/auth/me", headers=auth(body["refreshToken"]))
        assert resp.status_code == 401
        assert resp.get_json()["code"] == "INVALID_TOKEN"
