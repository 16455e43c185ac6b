"""Session endpoints: exchange, refresh, logout."""

from __future__ import annotations

from flask import Blueprint, request
from marshmallow import ValidationError

from snipvault.api.deps import (
    bearer_from_header,
    container,
    current_principal,
    json_response,
    request_snapshot,
    require_access_token,
    service_context,
    timing,
)
from snipvault.core.errors import Unauthorized
from snipvault.schemas import LogoutSchema, RefreshBodySchema, TokenPairSchema, UserSchema
from snipvault.services.audit.dto import AuditEntryIn
from snipvault.services.sessions.orchestrator import SESSION_RESOURCE
from snipvault.services.tokens.bearer import looks_like_bearer
from snipvault.services.users.service import UserService

bp = Blueprint("auth", __name__)

refresh_body_schema = RefreshBodySchema()
token_pair_schema = TokenPairSchema()
logout_schema = LogoutSchema()
user_schema = UserSchema()


def _missing_credential(action: str) -> Unauthorized:
    """Audit a request that carried no credential and build its 401."""

    container().recorder.record(
        AuditEntryIn.from_snapshot(
            request_snapshot(),
            action=action,
            resource=SESSION_RESOURCE,
            status_code=401,
            details={"code": "NO_TOKEN"},
        )
    )
    return Unauthorized("No token provided", code="NO_TOKEN")


def _refresh_bearer() -> str | None:
    """
    Refresh bearer from ``Authorization`` or the ``refreshToken`` JSON field.

    :raises ValidationError: The body carries a ``refreshToken`` that is not
        a usable string.
    """

    header = bearer_from_header()
    if header and looks_like_bearer(header):
        return header
    data = refresh_body_schema.load(request.get_json(silent=True) or {})
    return data.get("refresh_token") or header


@bp.post("/exchange")
@timing
def exchange():
    """Trade an identity-provider assertion for an access/refresh pair."""

    assertion = bearer_from_header()
    if assertion is None:
        raise _missing_credential("exchange")
    pair = container().sessions.exchange(assertion, request_snapshot())
    return json_response(token_pair_schema.dump(pair))


@bp.post("/refresh")
@timing
def refresh():
    """Rotate the refresh token and issue a new pair."""

    try:
        bearer = _refresh_bearer()
    except ValidationError:
        # Malformed field: rejected by the orchestrator as an invalid token
        bearer = ""
    else:
        if not bearer:
            raise _missing_credential("token_refresh")
    pair = container().sessions.refresh(bearer, request_snapshot())
    return json_response(token_pair_schema.dump(pair))


@bp.post("/logout")
@timing
def logout():
    """Revoke the presented refresh token; succeeds even when it is unknown."""

    try:
        bearer = _refresh_bearer()
    except ValidationError:
        bearer = None
    result = container().sessions.logout(bearer, request_snapshot())
    return json_response(logout_schema.dump({"success": True, "revoked": bool(result.revoked)}))


@bp.post("/logout-all")
@timing
@require_access_token
def logout_all():
    """Revoke every refresh token of the caller."""

    principal = current_principal()
    result = container().sessions.logout_everywhere(
        principal.user_id, principal.email, request_snapshot()
    )
    return json_response(logout_schema.dump({"success": True, "revoked": result.revoked}))


@bp.get("/me")
@timing
@require_access_token
def me():
    """Return the profile of the access-token holder."""

    service = UserService(container().refresh_store, ctx=service_context())
    return json_response({"data": user_schema.dump(service.get_profile())})
