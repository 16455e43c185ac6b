"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP. They form a closed set: every failure a component can signal
has its own class, and callers match on the class rather than probing fields.

The translation to HTTP responses (RFC 7807) is handled by
``snipvault/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL reports the constraint name; SQLite reports the column list,
    so callers pass whichever fragment identifies the constraint.

    :param exc: The exception raised by SQLAlchemy during flush/commit.
    :param constraint_name: Constraint name or message fragment to match.
    :returns: ``True`` if the IntegrityError matches.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to APIError via BaseService.
    """

    pass


# --------------------------------------------------------------------------- #
# Generic domain errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found (or not owned by the caller).

    :param entity: Entity name (e.g., "Snippet").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    :param code: Machine-readable code surfaced to the client.
    :type code: str
    """

    entity: str
    detail: str
    code: str = "conflict"

    def __str__(self) -> str:  # pragma: no cover
        return f"Conflict on {self.entity}: {self.detail}"


# --------------------------------------------------------------------------- #
# Identity (external assertion) errors
# --------------------------------------------------------------------------- #


class IdentityFailureReason(str, Enum):
    """Why an external identity assertion was rejected."""

    EXPIRED = "expired"
    REVOKED = "revoked"
    MALFORMED = "malformed"
    UNKNOWN = "unknown"


class IdentityVerificationError(ServiceError):
    """
    The identity oracle rejected the assertion.

    Only :attr:`reason` is meant for clients; the oracle's own message stays
    in the server log.

    :param reason: Failure category.
    :type reason: IdentityFailureReason
    """

    def __init__(self, reason: IdentityFailureReason) -> None:
        super().__init__(f"Identity assertion rejected ({reason.value})")
        self.reason = reason


# --------------------------------------------------------------------------- #
# Access / refresh token errors
# --------------------------------------------------------------------------- #


class AccessTokenError(ServiceError):
    """Base for access-token verification failures."""


class TokenExpiredError(AccessTokenError):
    """The access token signature is valid but its ``exp`` has passed."""

    def __init__(self, message: str = "Access token expired") -> None:
        super().__init__(message)


class TokenInvalidError(AccessTokenError):
    """Bad signature, malformed token, wrong token type or missing subject."""

    def __init__(self, message: str = "Access token invalid") -> None:
        super().__init__(message)


class RefreshTokenInvalidError(ServiceError):
    """
    The refresh bearer is unknown, expired or already rotated.

    The three cases are deliberately indistinguishable.
    """

    def __init__(self) -> None:
        super().__init__("Invalid or expired refresh token")


# --------------------------------------------------------------------------- #
# Infrastructure-integrity errors
# --------------------------------------------------------------------------- #


class AuthenticationFailure(ServiceError):
    """
    AEAD tag verification failed while decrypting a stored secret.

    Signals corrupted storage or a key-derivation mismatch; never user error.
    """

    def __init__(self, message: str = "Ciphertext failed authentication") -> None:
        super().__init__(message)


class AuditWriteError(ServiceError):
    """Persisting an audit entry failed. Always swallowed by the recorder."""
