"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from snipvault.repositories.audit import AuditRepository
from snipvault.repositories.base import (
    BaseRepository,
    Page,
    Pagination,
    apply_sorting,
    paginate_select,
)
from snipvault.repositories.refresh_token import RefreshTokenRepository
from snipvault.repositories.snippet import SnippetRepository
from snipvault.repositories.user import UserRepository

__all__ = [
    # Base
    "BaseRepository",
    "Page",
    "Pagination",
    "apply_sorting",
    "paginate_select",
    # Domain
    "AuditRepository",
    "RefreshTokenRepository",
    "SnippetRepository",
    "UserRepository",
]
