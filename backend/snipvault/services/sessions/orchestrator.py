"""Session lifecycle: exchange, refresh, logout."""

from __future__ import annotations

import logging
import time
from typing import Any

from snipvault.models.user import User
from snipvault.services._shared.base import BaseService
from snipvault.services._shared.errors import (
    ConflictError,
    IdentityVerificationError,
    RefreshTokenInvalidError,
)
from snipvault.services._shared.ports.refresh_token_store import RefreshTokenStore
from snipvault.services.audit.dto import AuditEntryIn, RequestSnapshot
from snipvault.services.audit.recorder import AuditRecorder
from snipvault.services.identity.broker import IdentityBroker
from snipvault.services.identity.dto import IdentityClaims
from snipvault.services.sessions.dto import LogoutOut, TokenPairOut
from snipvault.services.tokens.service import TokenService

log = logging.getLogger(__name__)

SESSION_RESOURCE = "session"


class SessionOrchestrator(BaseService):
    """
    Compose identity, tokens, refresh storage and audit into session flows.

    State machine per client::

        Unauthenticated --exchange--> Active --refresh--> Active
        Active --logout--> Unauthenticated

    Every flow records exactly one audit entry, including failed attempts,
    which are recorded with the failure reason before the error propagates.

    :param broker: Identity assertion verifier.
    :param tokens: Access-token minting.
    :param refresh_store: Refresh-token storage.
    :param recorder: Audit recorder.
    """

    def __init__(
        self,
        *,
        broker: IdentityBroker,
        tokens: TokenService,
        refresh_store: RefreshTokenStore,
        recorder: AuditRecorder,
    ) -> None:
        super().__init__()
        self.broker = broker
        self.tokens = tokens
        self.refresh_store = refresh_store
        self.recorder = recorder

    # ------------------------------------------------------------------ #
    # Exchange
    # ------------------------------------------------------------------ #

    def exchange(self, assertion: str, snapshot: RequestSnapshot) -> TokenPairOut:
        """
        Trade an identity assertion for an access/refresh pair.

        :param assertion: Raw provider token.
        :param snapshot: Request description for the audit trail.
        :returns: New token pair.
        :raises IdentityVerificationError: Assertion rejected.
        :raises ConflictError: The asserted email belongs to another account.
        """
        started = time.perf_counter()
        try:
            claims = self.broker.verify_assertion(assertion)
            user_id, email, created = self._upsert_user(claims)
        except (IdentityVerificationError, ConflictError) as exc:
            self._audit_failure("exchange", snapshot, exc, started)
            raise
        except Exception as exc:
            self._audit_error("exchange", snapshot, exc, started)
            raise

        try:
            pair = self._issue_pair(
                user_id, email, self.refresh_store.issue(user_id).bearer, created
            )
        except Exception as exc:
            self._audit_error("exchange", snapshot, exc, started, actor_id=user_id)
            raise
        self._audit(
            "exchange",
            snapshot,
            200,
            started,
            actor_id=user_id,
            actor_email=email,
            resource_id=str(user_id),
            details={"operation": "user_sync", "created": created},
            response_body=pair.as_body(),
        )
        log.info("session.exchange", extra={"actor_id": user_id, "status": "success"})
        return pair

    def _upsert_user(self, claims: IdentityClaims) -> tuple[int, str, bool]:
        with self.rw_uow() as uow:
            repo = uow.users
            if repo.email_taken_by_other(claims.email, claims.subject_id):
                raise ConflictError("User", "Email already linked to another account", "DUPLICATE_EMAIL")

            user = repo.get_by_subject(claims.subject_id)
            created = user is None
            if user is None:
                user = repo.add(
                    User(
                        external_subject_id=claims.subject_id,
                        email=claims.email,
                        display_name=claims.display_name,
                        avatar_url=claims.avatar_url,
                    )
                )
            else:
                user.email = claims.email
                if claims.avatar_url:
                    user.avatar_url = claims.avatar_url
                if not user.display_name:
                    user.display_name = claims.display_name
            user.last_login_at = self.now_utc()
            repo.flush()
            return user.id, user.email, created

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh(self, bearer: str, snapshot: RequestSnapshot) -> TokenPairOut:
        """
        Rotate ``bearer`` and mint a new pair.

        :param bearer: Refresh bearer presented by the client.
        :param snapshot: Request description for the audit trail.
        :returns: New token pair; ``bearer`` is no longer valid.
        :raises RefreshTokenInvalidError: Unknown, expired or already rotated.
        """
        started = time.perf_counter()
        outcome = None
        try:
            if not bearer:
                raise RefreshTokenInvalidError()
            view = self.refresh_store.lookup(bearer)
            if view is None:
                raise RefreshTokenInvalidError()

            outcome = self.refresh_store.rotate(bearer, view.owner_id)
            if not outcome.ok or outcome.issued is None:
                # Lost a concurrent rotation of the same bearer
                raise RefreshTokenInvalidError()

            with self.ro_uow() as uow:
                user = uow.users.get(view.owner_id)
                email = user.email if user is not None else None
            if email is None:
                self.refresh_store.revoke(outcome.issued.bearer)
                raise RefreshTokenInvalidError()
            pair = self._issue_pair(view.owner_id, email, outcome.issued.bearer, False)
        except RefreshTokenInvalidError as exc:
            self._audit_failure("token_refresh", snapshot, exc, started)
            raise
        except Exception as exc:
            self._audit_error("token_refresh", snapshot, exc, started)
            if outcome is not None and outcome.issued is not None:
                # The replacement never reached the client
                self.refresh_store.revoke(outcome.issued.bearer)
            raise

        self._audit(
            "token_refresh",
            snapshot,
            200,
            started,
            actor_id=view.owner_id,
            actor_email=email,
            response_body=pair.as_body(),
        )
        return pair

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, bearer: str | None, snapshot: RequestSnapshot) -> LogoutOut:
        """
        Revoke ``bearer`` if it is live. Never fails.

        Issued access tokens remain valid until they expire.

        :param bearer: Refresh bearer, if the client sent one.
        :param snapshot: Request description for the audit trail.
        :returns: Whether a record was deleted.
        """
        started = time.perf_counter()
        owner_id: int | None = None
        revoked = False
        if bearer:
            view = self.refresh_store.lookup(bearer)
            owner_id = view.owner_id if view is not None else None
            revoked = self.refresh_store.revoke(bearer)

        self._audit(
            "logout",
            snapshot,
            200,
            started,
            actor_id=owner_id,
            details={"revoked": revoked},
        )
        return LogoutOut(revoked=int(revoked))

    def logout_everywhere(
        self, user_id: int, email: str | None, snapshot: RequestSnapshot
    ) -> LogoutOut:
        """Revoke every refresh token of ``user_id``."""
        started = time.perf_counter()
        revoked = self.refresh_store.revoke_all(user_id)
        self._audit(
            "logout_all",
            snapshot,
            200,
            started,
            actor_id=user_id,
            actor_email=email,
            details={"revoked": revoked},
        )
        return LogoutOut(revoked=revoked)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _issue_pair(self, user_id: int, email: str, bearer: str, created: bool) -> TokenPairOut:
        return TokenPairOut(
            access_token=self.tokens.mint_access_token(user_id, email),
            refresh_token=bearer,
            expires_in_seconds=self.tokens.expires_in_seconds,
            user_id=user_id,
            created=created,
        )

    def _audit(
        self,
        action: str,
        snapshot: RequestSnapshot,
        status_code: int,
        started: float,
        *,
        response_body: dict[str, Any] | None = None,
        **extra: Any,
    ) -> None:
        self.recorder.record(
            AuditEntryIn.from_snapshot(
                snapshot,
                action=action,
                resource=SESSION_RESOURCE,
                status_code=status_code,
                response_body=response_body,
                duration_ms=round((time.perf_counter() - started) * 1000, 3),
                **extra,
            )
        )

    def _audit_failure(
        self, action: str, snapshot: RequestSnapshot, exc: Exception, started: float
    ) -> None:
        translated = self.translate_exceptions(exc)
        status_code = getattr(translated, "status_code", 500)
        code = getattr(translated, "code", None)
        details: dict[str, Any] = {"error": type(exc).__name__, "code": code}
        if isinstance(exc, IdentityVerificationError):
            details["reason"] = exc.reason.value
        self._audit(action, snapshot, status_code, started, details=details)
        log.info("session.%s_rejected", action, extra={"status": "failure", "reason": code})

    def _audit_error(
        self,
        action: str,
        snapshot: RequestSnapshot,
        exc: Exception,
        started: float,
        **extra: Any,
    ) -> None:
        """Record an unexpected failure as a 500 ``error`` entry."""
        self._audit(
            action,
            snapshot,
            500,
            started,
            details={"error": type(exc).__name__, "code": "internal_server_error"},
            **extra,
        )
        log.warning("session.%s_failed", action, extra={"status": "error"})
