"""Audit trail schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate

from snipvault.models.audit_entry import AUDIT_STATUSES
from snipvault.schemas.common import PaginationQuerySchema


class AuditQuerySchema(PaginationQuerySchema):
    """Pagination plus optional ``action``/``status``/``resource`` filters."""

    class Meta:
        unknown = EXCLUDE

    action = fields.String(load_default=None, validate=validate.Length(min=1, max=64))
    status = fields.String(load_default=None, validate=validate.OneOf(AUDIT_STATUSES))
    resource = fields.String(load_default=None, validate=validate.Length(min=1, max=64))


class AuditEntrySchema(Schema):
    """One entry of the caller's trail (snapshots are not exposed)."""

    id = fields.Integer(required=True)
    action = fields.String(required=True)
    resource = fields.String(required=True)
    resource_id = fields.String(allow_none=True)
    method = fields.String(required=True)
    path = fields.String(required=True)
    status = fields.String(required=True)
    status_code = fields.Integer(required=True)
    details = fields.Dict(allow_none=True)
    duration_ms = fields.Float(required=True)
    ip_address = fields.String(allow_none=True)
    created_at = fields.DateTime(required=True)


class AuditStatsSchema(Schema):
    total = fields.Integer(required=True)
    by_status = fields.Dict(keys=fields.String(), values=fields.Integer())
    by_action = fields.Dict(keys=fields.String(), values=fields.Integer())
