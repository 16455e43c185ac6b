"""
snipvault.services._shared.ports
================================

*Ports* (hexagonal interfaces) that keep the service layer independent from
the identity provider, JWT library, refresh-token storage and audit storage.

Modules
-------
- :mod:`identity_verifier`:
    :class:`~.IdentityVerifier` and the table-driven :class:`~.StubIdentityVerifier`.
- :mod:`token_provider`:
    :class:`~.TokenProvider` for signing and decoding access JWTs.
- :mod:`refresh_token_store`:
    :class:`~.RefreshTokenStore`, :class:`~.RotationResult` and the
    :class:`~.InMemoryRefreshTokenStore` double.
- :mod:`audit_sink`:
    :class:`~.AuditSink` and the :class:`~.InMemoryAuditSink` double.

Concrete adapters (Firebase, Flask-JWT-Extended, SQLAlchemy, Redis) live
under ``snipvault.infra``.
"""

from __future__ import annotations

from .audit_sink import AuditSink, InMemoryAuditSink
from .identity_verifier import IdentityVerifier, StubIdentityVerifier
from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    IssuedRefreshToken,
    RefreshTokenStore,
    RefreshTokenView,
    RotationOutcome,
    RotationResult,
)
from .token_provider import TokenProvider

__all__ = [
    "AuditSink",
    "InMemoryAuditSink",
    "IdentityVerifier",
    "StubIdentityVerifier",
    "InMemoryRefreshTokenStore",
    "IssuedRefreshToken",
    "RefreshTokenStore",
    "RefreshTokenView",
    "RotationOutcome",
    "RotationResult",
    "TokenProvider",
]
