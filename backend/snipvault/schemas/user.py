"""User resource schemas."""

from __future__ import annotations

from marshmallow import RAISE, Schema, fields, validate


class UserUpdateSchema(Schema):
    """Editable profile fields; unknown keys are rejected."""

    class Meta:
        unknown = RAISE

    display_name = fields.String(allow_none=True, validate=validate.Length(min=1, max=100))
    avatar_url = fields.Url(allow_none=True, validate=validate.Length(max=2048))


class UserSchema(Schema):
    """Profile of the authenticated user."""

    id = fields.Integer(required=True)
    email = fields.Email(required=True)
    display_name = fields.String(allow_none=True)
    avatar_url = fields.String(allow_none=True)
    last_login_at = fields.DateTime(allow_none=True)
    created_at = fields.DateTime(allow_none=True)


class UserStatsSchema(Schema):
    snippet_count = fields.Integer(required=True)
    total_usage = fields.Integer(required=True)
    active_sessions = fields.Integer(required=True)
    member_since = fields.DateTime(allow_none=True)
