"""Snippet CRUD endpoints; values are encrypted at rest."""

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
from snipvault.schemas import SnippetCreateSchema, SnippetSchema, SnippetUpdateSchema
from snipvault.services.snippets.dto import SnippetIn, SnippetUpdateIn
from snipvault.services.snippets.service import SnippetService

bp = Blueprint("snippets", __name__)

create_schema = SnippetCreateSchema()
update_schema = SnippetUpdateSchema()
snippet_schema = SnippetSchema()
snippets_schema = SnippetSchema(many=True)


def _service() -> SnippetService:
    return SnippetService(container().crypto, ctx=service_context())


@bp.get("")
@timing
@require_access_token
def list_snippets():
    """Return all snippets of the caller, most recently updated first."""

    items = _service().list_snippets()
    return json_response({"data": snippets_schema.dump(items), "meta": {"total": len(items)}})


@bp.post("")
@timing
@audited("snippet_create", "snippet")
@require_access_token
def create_snippet():
    payload = create_schema.load(request.get_json(silent=True) or {})
    out = _service().create_snippet(SnippetIn(keyword=payload["keyword"], value=payload["value"]))
    return json_response({"data": snippet_schema.dump(out)}, status=201)


@bp.get("/<int:snippet_id>")
@timing
@require_access_token
def get_snippet(snippet_id: int):
    return json_response({"data": snippet_schema.dump(_service().get_snippet(snippet_id))})


@bp.put("/<int:snippet_id>")
@timing
@audited("snippet_update", "snippet")
@require_access_token
def update_snippet(snippet_id: int):
    """Change keyword and/or value (a keyword change re-encrypts the value)."""

    payload = update_schema.load(request.get_json(silent=True) or {})
    out = _service().update_snippet(
        snippet_id, SnippetUpdateIn(keyword=payload.get("keyword"), value=payload.get("value"))
    )
    return json_response({"data": snippet_schema.dump(out)})


@bp.delete("/<int:snippet_id>")
@timing
@audited("snippet_delete", "snippet")
@require_access_token
def delete_snippet(snippet_id: int):
    _service().delete_snippet(snippet_id)
    return json_response({"success": True})


@bp.post("/<int:snippet_id>/usage")
@timing
@audited("snippet_usage", "snippet")
@require_access_token
def record_usage(snippet_id: int):
    """Count one expansion of the snippet by the extension."""

    out = _service().record_usage(snippet_id)
    return json_response({"data": snippet_schema.dump(out)})
