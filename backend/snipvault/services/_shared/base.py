"""Base class shared by application services."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from snipvault.core import errors as api_errors
from snipvault.repositories.base import Pagination
from snipvault.services._shared.errors import (
    AuthenticationFailure,
    ConflictError,
    IdentityFailureReason,
    IdentityVerificationError,
    NotFoundError,
    RefreshTokenInvalidError,
    ServiceError,
    TokenExpiredError,
    TokenInvalidError,
)
from snipvault.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)

# Client-facing 401 codes per identity failure reason
_IDENTITY_CODES = {
    IdentityFailureReason.EXPIRED: "TOKEN_EXPIRED",
    IdentityFailureReason.REVOKED: "TOKEN_REVOKED",
    IdentityFailureReason.MALFORMED: "INVALID_TOKEN",
    IdentityFailureReason.UNKNOWN: "INVALID_TOKEN",
}


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data.

    :param actor_id: Authenticated user identifier.
    :param actor_email: Authenticated user email (from the access token).
    :param request_id: Correlation id for logging/tracing.
    """

    actor_id: int | None = None
    actor_email: str | None = None
    request_id: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Centralize error translation.
    * Offer shared validation helpers (pagination/sorting).

    Notes
    -----
    Services must never touch the global session; always use a Unit of Work.
    """

    DEFAULT_READ_ISOLATION = "READ COMMITTED"

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context.
        :type ctx: ServiceContext | None
        """
        self.ctx = ctx or ServiceContext()

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(self, *, isolation: str | None = None) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param isolation: Transaction isolation level hint.
        :type isolation: str | None
        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(
            isolation_level=isolation or self.DEFAULT_READ_ISOLATION
        )

    @staticmethod
    def now_utc() -> datetime:
        """Return the current timezone-aware UTC time."""
        return datetime.now(UTC)

    # ----------------------- Validation utilities ---------------------------

    def ensure_pagination(
        self, *, page: int, limit: int, sort: Iterable[str] | None = None
    ) -> Pagination:
        """
        Build a Pagination value object with basic clamping.

        :param page: 1-based page number.
        :type page: int
        :param limit: Page size.
        :type limit: int
        :param sort: Sort tokens like ["-created_at", "keyword"].
        :type sort: Iterable[str] | None
        :returns: Pagination instance.
        :rtype: Pagination
        """
        page = max(1, int(page))
        limit = max(1, int(limit))
        return Pagination(page=page, limit=limit, sort=list(sort or []))

    # -------------------------- Error handling ------------------------------

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, IdentityVerificationError):
            # → 401 with the reason-specific code
            return api_errors.Unauthorized(
                "Identity assertion rejected", code=_IDENTITY_CODES[exc.reason]
            )

        if isinstance(exc, TokenExpiredError):
            return api_errors.Unauthorized("Access token expired", code="TOKEN_EXPIRED")

        if isinstance(exc, TokenInvalidError):
            return api_errors.Unauthorized("Invalid access token", code="INVALID_TOKEN")

        if isinstance(exc, RefreshTokenInvalidError):
            # Same body for unknown, expired and already-rotated bearers
            return api_errors.Unauthorized(
                "Invalid or expired refresh token", code="INVALID_REFRESH_TOKEN"
            )

        if isinstance(exc, AuthenticationFailure):
            # → 500; never a user-correctable error
            return api_errors.InternalError()

        if isinstance(exc, NotFoundError):
            return api_errors.NotFound(str(exc))

        if isinstance(exc, ConflictError):
            return api_errors.Conflict(str(exc), code=exc.code)

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
