"""Session endpoint schemas (camelCase wire format used by the extension)."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate


class RefreshBodySchema(Schema):
    """Optional JSON body for ``/auth/refresh`` and ``/auth/logout``."""

    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(
        data_key="refreshToken", load_default=None, validate=validate.Length(min=1, max=256)
    )


class TokenPairSchema(Schema):
    """Response payload with both tokens."""

    access_token = fields.String(data_key="accessToken", required=True)
    refresh_token = fields.String(data_key="refreshToken", required=True)
    expires_in_seconds = fields.Integer(data_key="expiresInSeconds", required=True)


class LogoutSchema(Schema):
    success = fields.Boolean(required=True)
    revoked = fields.Raw(required=True)
