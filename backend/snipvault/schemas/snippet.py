"""Snippet resource schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate, validates_schema

from snipvault.models.snippet import KEYWORD_MAX_LENGTH, KEYWORD_PREFIX

VALUE_MAX_LENGTH = 10_000

_keyword = validate.And(
    validate.Length(min=2, max=KEYWORD_MAX_LENGTH),
    validate.Regexp(rf"^{KEYWORD_PREFIX}\S+$", error="Keyword must start with / and contain no spaces."),
)


class SnippetCreateSchema(Schema):
    """Payload for creating a snippet."""

    class Meta:
        unknown = EXCLUDE

    keyword = fields.String(required=True, validate=_keyword)
    value = fields.String(required=True, validate=validate.Length(min=1, max=VALUE_MAX_LENGTH))


class SnippetUpdateSchema(Schema):
    """Partial update; at least one field is required."""

    class Meta:
        unknown = EXCLUDE

    keyword = fields.String(validate=_keyword)
    value = fields.String(validate=validate.Length(min=1, max=VALUE_MAX_LENGTH))

    @validates_schema
    def _not_empty(self, data: dict[str, Any], **_: Any) -> None:
        if not data:
            raise ValidationError("Provide keyword and/or value.")


class SnippetSchema(Schema):
    """Owner-facing representation (value decrypted)."""

    id = fields.Integer(required=True)
    keyword = fields.String(required=True)
    value = fields.String(required=True)
    usage_count = fields.Integer(required=True)
    last_used_at = fields.DateTime(allow_none=True)
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)
