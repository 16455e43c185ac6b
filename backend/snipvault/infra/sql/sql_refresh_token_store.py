# comments in English; reST docstrings
from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from snipvault.models.base import as_utc
from snipvault.models.refresh_token import RefreshToken
from snipvault.services._shared.ports import (
    IssuedRefreshToken,
    RefreshTokenStore,
    RefreshTokenView,
    RotationOutcome,
    RotationResult,
)
from snipvault.services.tokens.bearer import BearerHasher, looks_like_bearer, new_bearer
from snipvault.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)


class SQLRefreshTokenStore(RefreshTokenStore):
    """
    Relational refresh token store (``refresh_tokens`` table).

    Rotation deletes the old row in its own committed transaction and reads
    the affected-row count: the database serializes concurrent deletes of the
    same row, so exactly one caller sees ``1``. The replacement is issued only
    after that commit, which means a crash in between leaves the client
    without any valid token rather than with two.

    .. note::
       Requires an active Flask app context (uses the Flask-SQLAlchemy session).

    :param hasher: Keyed hash for bearers.
    :param ttl: Refresh token lifetime.
    """

    def __init__(self, hasher: BearerHasher, *, ttl: timedelta) -> None:
        self.hasher = hasher
        self.ttl = ttl

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    # -------------------- API ------------------------

    def issue(self, owner_id: int) -> IssuedRefreshToken:
        bearer = new_bearer()
        expires_at = self._now() + self.ttl
        with SQLAlchemyUnitOfWork() as uow:
            uow.refresh_tokens.add(
                RefreshToken(
                    owner_id=owner_id,
                    token_hash=self.hasher.digest(bearer),
                    expires_at=expires_at,
                )
            )
        return IssuedRefreshToken(bearer=bearer, owner_id=owner_id, expires_at=expires_at)

    def lookup(self, bearer: str) -> RefreshTokenView | None:
        if not looks_like_bearer(bearer):
            return None
        token_hash = self.hasher.digest(bearer)
        now = self._now()
        with SQLAlchemyUnitOfWork() as uow:
            row = uow.refresh_tokens.get_active_by_hash(token_hash, now)
            if row is None:
                return None
            view = RefreshTokenView(
                owner_id=row.owner_id,
                expires_at=as_utc(row.expires_at),
                created_at=as_utc(row.created_at),
            )
            uow.refresh_tokens.touch(token_hash, now)
        return view

    def rotate(self, old_bearer: str, owner_id: int) -> RotationOutcome:
        if not looks_like_bearer(old_bearer):
            return RotationOutcome(RotationResult.NOT_FOUND)
        with SQLAlchemyUnitOfWork() as uow:
            removed = uow.refresh_tokens.delete_active(
                self.hasher.digest(old_bearer), owner_id, self._now()
            )
        if removed != 1:
            log.info("refresh.rotate_lost", extra={"actor_id": owner_id})
            return RotationOutcome(RotationResult.NOT_FOUND)
        return RotationOutcome(RotationResult.OK, self.issue(owner_id))

    def revoke(self, bearer: str) -> bool:
        if not looks_like_bearer(bearer):
            return False
        with SQLAlchemyUnitOfWork() as uow:
            removed = uow.refresh_tokens.delete_by_hash(self.hasher.digest(bearer))
        return removed > 0

    def revoke_all(self, owner_id: int) -> int:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.delete_for_owner(owner_id)

    def purge_expired(self) -> int:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.delete_expired(self._now())

    def count_active(self, owner_id: int) -> int:
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            return uow.refresh_tokens.count_active_for_owner(owner_id, self._now())
