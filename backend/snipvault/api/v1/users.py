"""Self-service account endpoints."""

from __future__ import annotations

from flask import Blueprint, request

from snipvault.api.deps import (
    audited,
    container,
    json_response,
    require_access_token,
    service_context,
    timing,
)
from snipvault.schemas import UserSchema, UserStatsSchema, UserUpdateSchema
from snipvault.services.users.dto import UserUpdateIn
from snipvault.services.users.service import UserService

bp = Blueprint("users", __name__)

user_schema = UserSchema()
stats_schema = UserStatsSchema()
update_schema = UserUpdateSchema()


def _service() -> UserService:
    return UserService(container().refresh_store, ctx=service_context())


@bp.get("/me")
@timing
@require_access_token
def get_me():
    return json_response({"data": user_schema.dump(_service().get_profile())})


@bp.patch("/me")
@timing
@audited("user_update", "user")
@require_access_token
def update_me():
    payload = update_schema.load(request.get_json(silent=True) or {})
    out = _service().update_profile(UserUpdateIn(fields=payload))
    return json_response({"data": user_schema.dump(out)})


@bp.get("/me/stats")
@timing
@require_access_token
def my_stats():
    return json_response({"data": stats_schema.dump(_service().stats())})


@bp.delete("/me")
@timing
@audited("user_delete", "user")
@require_access_token
def delete_me():
    """Delete the account, its snippets and every refresh token."""

    revoked = _service().delete_account()
    return json_response({"success": True, "revoked": revoked})
