"""Unit tests for TokenService over the Flask-JWT-Extended adapter."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest
from flask_jwt_extended import create_refresh_token
from freezegun import freeze_time
from snipvault.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from snipvault.services._shared.errors import TokenExpiredError, TokenInvalidError
from snipvault.services.tokens.service import TokenService


@pytest.fixture
def tokens(app):
    return TokenService(JWTTokenProvider(), ttl_seconds=900)


def test_mint_and_verify(tokens):
    token = tokens.mint_access_token(42, "alice@example.com")
    claims = tokens.verify_access_token(token)
    assert claims.user_id == 42
    assert claims.email == "alice@example.com"


def test_claims_carry_string_subject_and_access_type(tokens):
    payload = JWTTokenProvider().decode(tokens.mint_access_token(7, "b@example.com"))
    assert payload["sub"] == "7"
    assert payload["type"] == "access"
    assert payload["email"] == "b@example.com"
    assert payload["exp"] - payload["iat"] == 900


def test_expires_in_seconds(tokens):
    assert tokens.expires_in_seconds == 900


def test_expired_after_ttl(tokens):
    with freeze_time(datetime(2026, 1, 1, 12, 0, tzinfo=UTC)) as frozen:
        token = tokens.mint_access_token(1, "a@example.com")
        frozen.tick(timedelta(seconds=899))
        assert tokens.verify_access_token(token).user_id == 1
        frozen.tick(timedelta(seconds=2))
        with pytest.raises(TokenExpiredError):
            tokens.verify_access_token(token)


def test_expires_at_matches_ttl(tokens):
    with freeze_time(datetime(2026, 1, 1, 12, 0, tzinfo=UTC)):
        claims = tokens.verify_access_token(tokens.mint_access_token(1))
    assert claims.expires_at == datetime(2026, 1, 1, 12, 15, tzinfo=UTC)
    assert claims.email is None


@pytest.mark.parametrize("garbage", ["", "not-a-jwt", "a.b.c"])
def test_malformed_tokens_are_invalid(tokens, garbage):
    with pytest.raises(TokenInvalidError):
        tokens.verify_access_token(garbage)


def test_bad_signature_is_invalid(app, tokens):
    token = tokens.mint_access_token(1, "a@example.com")
    app.config["JWT_SECRET_KEY"] = "another-secret-key-that-is-long-enough!"
    with pytest.raises(TokenInvalidError):
        tokens.verify_access_token(token)


def test_refresh_typed_jwt_is_rejected(tokens):
    token = create_refresh_token(identity="1")
    with pytest.raises(TokenInvalidError):
        tokens.verify_access_token(token)


def test_non_numeric_subject_is_rejected(tokens):
    token = JWTTokenProvider().create_access_token(
        identity="not-a-user-id", expires_delta=timedelta(minutes=5)
    )
    with pytest.raises(TokenInvalidError):
        tokens.verify_access_token(token)


def test_non_positive_ttl_rejected():
    with pytest.raises(ValueError):
        TokenService(JWTTokenProvider(), ttl_seconds=0)


def test_token_without_type_claim_is_rejected(app, tokens):
    now = datetime.now(UTC)
    token = jwt.encode(
        {"sub": "1", "email": "a@example.com", "iat": now, "exp": now + timedelta(minutes=5)},
        app.config["JWT_SECRET_KEY"],
        algorithm=app.config["JWT_ALGORITHM"],
    )
    with pytest.raises(TokenInvalidError, match="access token required"):
        tokens.verify_access_token(token)
