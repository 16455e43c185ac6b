"""Service layer public API.

This package exposes the essential building blocks for the service layer so that
callers can import from :mod:`snipvault.services` without knowing internal structure.

Re-exports
----------
- Base primitives (from ``snipvault.services._shared.base``)
    * :class:`BaseService`
    * :class:`ServiceContext`

- Session flows (from ``snipvault.services.sessions``)
    * :class:`SessionOrchestrator`
    * DTOs: :class:`TokenPairOut`, :class:`LogoutOut`

- Snippets (from ``snipvault.services.snippets``)
    * :class:`SnippetService`
    * DTOs: :class:`SnippetIn`, :class:`SnippetUpdateIn`, :class:`SnippetOut`

- Users (from ``snipvault.services.users``)
    * :class:`UserService`
    * DTOs: :class:`UserOut`, :class:`UserUpdateIn`, :class:`UserStatsOut`

- Audit (from ``snipvault.services.audit``)
    * :class:`AuditRecorder`, :class:`AuditQueryService`
"""

from __future__ import annotations

# Base primitives (service base + request-scoped context)
from ._shared.base import BaseService, ServiceContext

# Audit trail
from .audit.query import AuditQueryService
from .audit.recorder import AuditRecorder

# Session flows
from .sessions.dto import LogoutOut, TokenPairOut
from .sessions.orchestrator import SessionOrchestrator

# Snippets
from .snippets.dto import SnippetIn, SnippetOut, SnippetUpdateIn
from .snippets.service import SnippetService

# Users
from .users.dto import UserOut, UserStatsOut, UserUpdateIn
from .users.service import UserService

__all__ = [
    # Base
    "BaseService",
    "ServiceContext",
    # Audit
    "AuditQueryService",
    "AuditRecorder",
    # Sessions
    "SessionOrchestrator",
    "TokenPairOut",
    "LogoutOut",
    # Snippets
    "SnippetService",
    "SnippetIn",
    "SnippetUpdateIn",
    "SnippetOut",
    # Users
    "UserService",
    "UserOut",
    "UserUpdateIn",
    "UserStatsOut",
]
