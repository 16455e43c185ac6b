"""Read access to the caller's own audit trail."""

from __future__ import annotations

from flask import Blueprint, request

from snipvault.api.deps import current_principal, json_response, require_access_token, timing
from snipvault.schemas import AuditEntrySchema, AuditQuerySchema, AuditStatsSchema, build_meta
from snipvault.services.audit.query import AuditQueryService

bp = Blueprint("audit", __name__)

query_schema = AuditQuerySchema()
entries_schema = AuditEntrySchema(many=True)
stats_schema = AuditStatsSchema()


@bp.get("/logs")
@timing
@require_access_token
def list_logs():
    """Page through the caller's entries, newest first."""

    args = query_schema.load(request.args)
    page = AuditQueryService().list_entries(
        current_principal().user_id,
        page=args["page"],
        limit=args["limit"],
        action=args.get("action"),
        status=args.get("status"),
        resource=args.get("resource"),
    )
    return json_response(
        {
            "data": entries_schema.dump(page.items),
            "meta": build_meta(total=page.total, page=page.page, limit=page.limit),
        }
    )


@bp.get("/stats")
@timing
@require_access_token
def stats():
    return json_response({"data": stats_schema.dump(AuditQueryService().stats(current_principal().user_id))})
