"""Unit tests for SessionOrchestrator.

Runs against the SQLite test database for users, the in-memory refresh store
and an inline in-memory audit sink.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from snipvault.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from snipvault.models.user import User
from snipvault.services._shared.errors import (
    ConflictError,
    IdentityFailureReason,
    IdentityVerificationError,
    RefreshTokenInvalidError,
)
from snipvault.services._shared.ports import (
    InMemoryAuditSink,
    InMemoryRefreshTokenStore,
    StubIdentityVerifier,
)
from snipvault.services.audit.dto import REDACTED, RequestSnapshot
from snipvault.services.audit.recorder import AuditRecorder
from snipvault.services.identity.broker import IdentityBroker
from snipvault.services.sessions.orchestrator import SessionOrchestrator
from snipvault.services.tokens.service import TokenService
from sqlalchemy import select

REFRESH_TTL = timedelta(days=180)


@pytest.fixture
def verifier():
    v = StubIdentityVerifier()
    v.allow("alice-token", uid="uid-alice", email="Alice@Example.com", name="Alice")
    v.allow("bob-token", uid="uid-bob", email="bob@example.com")
    return v


@pytest.fixture
def sink():
    return InMemoryAuditSink()


@pytest.fixture
def store():
    return InMemoryRefreshTokenStore(secret="orchestrator", ttl=REFRESH_TTL)


@pytest.fixture
def tokens(app):
    return TokenService(JWTTokenProvider(), ttl_seconds=900)


@pytest.fixture
def orchestrator(verifier, tokens, store, sink):
    return SessionOrchestrator(
        broker=IdentityBroker(verifier),
        tokens=tokens,
        refresh_store=store,
        recorder=AuditRecorder(sink, async_mode=False),
    )


@pytest.fixture
def snap():
    return RequestSnapshot(method="POST", path="/auth/exchange", ip_address="127.0.0.1")


# ------------------------------- exchange -------------------------------- #


def test_first_exchange_creates_user(orchestrator, tokens, session, sink, snap):
    pair = orchestrator.exchange("alice-token", snap)

    assert pair.created is True
    assert pair.expires_in_seconds == 900
    user = session.get(User, pair.user_id)
    assert user.external_subject_id == "uid-alice"
    assert user.email == "alice@example.com"
    assert user.display_name == "Alice"
    assert user.last_login_at is not None

    claims = tokens.verify_access_token(pair.access_token)
    assert claims.user_id == pair.user_id
    assert claims.email == "alice@example.com"

    (entry,) = sink.entries
    assert entry.action == "exchange"
    assert entry.status_code == 200
    assert entry.actor_id == pair.user_id
    assert entry.details == {"operation": "user_sync", "created": True}
    assert entry.response_snapshot["accessToken"] == REDACTED
    assert entry.response_snapshot["refreshToken"] == REDACTED


def test_repeat_exchange_updates_same_user(orchestrator, verifier, session, snap):
    first = orchestrator.exchange("alice-token", snap)
    user = session.get(User, first.user_id)
    user.display_name = "Custom Name"
    session.commit()

    verifier.allow(
        "alice-token-2", uid="uid-alice", email="alice@new.example.com",
        name="Provider Name", picture="https://img.example.com/a.png",
    )
    second = orchestrator.exchange("alice-token-2", snap)

    assert second.created is False
    assert second.user_id == first.user_id
    session.expire_all()
    user = session.get(User, first.user_id)
    assert user.email == "alice@new.example.com"
    assert user.display_name == "Custom Name"
    assert user.avatar_url == "https://img.example.com/a.png"
    assert session.execute(select(User)).scalars().all() == [user]


def test_refresh_token_ttl_is_180_days(orchestrator, store, snap):
    before = datetime.now(UTC)
    pair = orchestrator.exchange("alice-token", snap)
    view = store.lookup(pair.refresh_token)
    assert abs(view.expires_at - (before + REFRESH_TTL)) < timedelta(seconds=1)


def test_access_token_ttl_is_15_minutes(orchestrator, snap):
    pair = orchestrator.exchange("bob-token", snap)
    payload = JWTTokenProvider().decode(pair.access_token)
    assert payload["exp"] - payload["iat"] == 900


def test_rejected_assertion_is_audited(orchestrator, verifier, sink, session, snap):
    verifier.reject("stale", IdentityFailureReason.EXPIRED)

    with pytest.raises(IdentityVerificationError) as err:
        orchestrator.exchange("stale", snap)

    assert err.value.reason is IdentityFailureReason.EXPIRED
    assert session.execute(select(User)).first() is None
    (entry,) = sink.entries
    assert entry.action == "exchange"
    assert entry.status_code == 401
    assert entry.actor_id is None
    assert entry.details["reason"] == "expired"
    assert entry.details["code"] == "TOKEN_EXPIRED"


def test_email_owned_by_other_subject_conflicts(orchestrator, verifier, sink, snap):
    orchestrator.exchange("bob-token", snap)
    verifier.allow("impostor", uid="uid-other", email="bob@example.com")

    with pytest.raises(ConflictError) as err:
        orchestrator.exchange("impostor", snap)

    assert err.value.code == "DUPLICATE_EMAIL"
    assert sink.entries[-1].status_code == 409
    assert sink.entries[-1].details["code"] == "DUPLICATE_EMAIL"


def test_audit_failure_never_fails_exchange(orchestrator, sink, snap):
    sink.fail = True
    pair = orchestrator.exchange("alice-token", snap)
    assert pair.access_token
    assert sink.entries == []


def test_refresh_store_failure_during_exchange_is_audited(
    orchestrator, store, sink, snap, monkeypatch
):
    def _broken_issue(owner_id):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(store, "issue", _broken_issue)

    with pytest.raises(RuntimeError):
        orchestrator.exchange("alice-token", snap)

    (entry,) = sink.entries
    assert entry.action == "exchange"
    assert entry.status_code == 500
    assert entry.status == "error"
    assert entry.actor_id is not None
    assert entry.details == {"error": "RuntimeError", "code": "internal_server_error"}


def test_database_failure_during_exchange_is_audited(orchestrator, sink, snap, monkeypatch):
    def _broken_upsert(claims):
        raise RuntimeError("database gone")

    monkeypatch.setattr(orchestrator, "_upsert_user", _broken_upsert)

    with pytest.raises(RuntimeError):
        orchestrator.exchange("alice-token", snap)

    (entry,) = sink.entries
    assert entry.status == "error"
    assert entry.actor_id is None


# -------------------------------- refresh -------------------------------- #


def test_refresh_rotates(orchestrator, tokens, store, sink, snap):
    pair = orchestrator.exchange("alice-token", snap)

    renewed = orchestrator.refresh(pair.refresh_token, snap)

    assert renewed.refresh_token != pair.refresh_token
    assert renewed.user_id == pair.user_id
    assert renewed.created is False
    assert store.lookup(pair.refresh_token) is None
    assert tokens.verify_access_token(renewed.access_token).user_id == pair.user_id
    assert sink.entries[-1].action == "token_refresh"
    assert sink.entries[-1].actor_id == pair.user_id


def test_replayed_refresh_is_rejected(orchestrator, sink, snap):
    pair = orchestrator.exchange("alice-token", snap)
    orchestrator.refresh(pair.refresh_token, snap)

    with pytest.raises(RefreshTokenInvalidError):
        orchestrator.refresh(pair.refresh_token, snap)

    entry = sink.entries[-1]
    assert entry.action == "token_refresh"
    assert entry.status_code == 401
    assert entry.details["code"] == "INVALID_REFRESH_TOKEN"


@pytest.mark.parametrize("bearer", ["", "rtk_" + "0" * 64, "random"])
def test_unknown_refresh_is_rejected(orchestrator, sink, bearer, snap):
    with pytest.raises(RefreshTokenInvalidError):
        orchestrator.refresh(bearer, snap)

    (entry,) = sink.entries
    assert entry.action == "token_refresh"
    assert entry.status_code == 401
    assert entry.details["code"] == "INVALID_REFRESH_TOKEN"


def test_failure_after_rotation_is_audited_and_revokes_replacement(
    orchestrator, tokens, store, sink, snap, monkeypatch
):
    pair = orchestrator.exchange("alice-token", snap)

    def _broken_mint(user_id, email):
        raise RuntimeError("signing failed")

    monkeypatch.setattr(tokens, "mint_access_token", _broken_mint)

    with pytest.raises(RuntimeError):
        orchestrator.refresh(pair.refresh_token, snap)

    entry = sink.entries[-1]
    assert entry.action == "token_refresh"
    assert entry.status == "error"
    assert entry.status_code == 500
    # The presented bearer was consumed and the unseen replacement revoked
    assert store.lookup(pair.refresh_token) is None
    assert store.count_active(pair.user_id) == 0


def test_refresh_for_deleted_user_leaves_nothing_behind(orchestrator, store, snap):
    orphan = store.issue(424242)
    with pytest.raises(RefreshTokenInvalidError):
        orchestrator.refresh(orphan.bearer, snap)
    assert store.count_active(424242) == 0


# -------------------------------- logout --------------------------------- #


def test_logout_revokes_once(orchestrator, store, sink, snap):
    pair = orchestrator.exchange("alice-token", snap)

    assert orchestrator.logout(pair.refresh_token, snap).revoked == 1
    assert store.lookup(pair.refresh_token) is None
    assert sink.entries[-1].action == "logout"
    assert sink.entries[-1].actor_id == pair.user_id
    assert sink.entries[-1].details == {"revoked": True}

    assert orchestrator.logout(pair.refresh_token, snap).revoked == 0
    assert sink.entries[-1].actor_id is None


def test_logout_without_token_still_succeeds(orchestrator, sink, snap):
    assert orchestrator.logout(None, snap).revoked == 0
    assert sink.entries[-1].status_code == 200


def test_access_token_survives_logout(orchestrator, tokens, snap):
    pair = orchestrator.exchange("alice-token", snap)
    orchestrator.logout(pair.refresh_token, snap)
    assert tokens.verify_access_token(pair.access_token).user_id == pair.user_id


def test_logout_everywhere(orchestrator, store, sink, snap):
    a = orchestrator.exchange("alice-token", snap)
    b = orchestrator.exchange("alice-token", snap)
    bob = orchestrator.exchange("bob-token", snap)

    out = orchestrator.logout_everywhere(a.user_id, "alice@example.com", snap)

    assert out.revoked == 2
    assert store.lookup(a.refresh_token) is None
    assert store.lookup(b.refresh_token) is None
    assert store.lookup(bob.refresh_token) is not None
    assert sink.entries[-1].action == "logout_all"
    assert sink.entries[-1].details == {"revoked": 2}
