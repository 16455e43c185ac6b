"""Convenience exports for application schemas."""

from __future__ import annotations

from .audit import AuditEntrySchema, AuditQuerySchema, AuditStatsSchema
from .auth import LogoutSchema, RefreshBodySchema, TokenPairSchema
from .common import PaginationQuerySchema, build_meta
from .snippet import SnippetCreateSchema, SnippetSchema, SnippetUpdateSchema
from .user import UserSchema, UserStatsSchema, UserUpdateSchema

__all__ = [
    "AuditEntrySchema",
    "AuditQuerySchema",
    "AuditStatsSchema",
    "LogoutSchema",
    "RefreshBodySchema",
    "TokenPairSchema",
    "PaginationQuerySchema",
    "build_meta",
    "SnippetCreateSchema",
    "SnippetSchema",
    "SnippetUpdateSchema",
    "UserSchema",
    "UserStatsSchema",
    "UserUpdateSchema",
]
