"""Refresh-token repository; every mutation is a single-statement DELETE."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import delete, func, select, update

from snipvault.models.refresh_token import RefreshToken
from snipvault.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken`.

    Deletes are issued as bulk statements so the affected-row count can be
    used as the arbiter between concurrent rotations of the same token.
    """

    model = RefreshToken

    def get_active_by_hash(self, token_hash: str, now: datetime) -> RefreshToken | None:
        """Return the record for ``token_hash`` if it has not expired.

        :param token_hash: Hex HMAC of the presented bearer.
        :param now: Reference time for the expiry filter.
        :returns: Matching record or ``None`` (unknown and expired look alike).
        """
        stmt = select(RefreshToken).where(
            RefreshToken.token_hash == token_hash,
            RefreshToken.expires_at > now,
        )
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def delete_active(self, token_hash: str, owner_id: int, now: datetime) -> int:
        """Delete a live record owned by ``owner_id``; return rows affected (0 or 1)."""
        stmt = (
            delete(RefreshToken)
            .where(
                RefreshToken.token_hash == token_hash,
                RefreshToken.owner_id == owner_id,
                RefreshToken.expires_at > now,
            )
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_by_hash(self, token_hash: str) -> int:
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.token_hash == token_hash)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_for_owner(self, owner_id: int) -> int:
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.owner_id == owner_id)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_expired(self, now: datetime) -> int:
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def touch(self, token_hash: str, when: datetime) -> None:
        """Stamp ``last_used_at`` on a record (best-effort bookkeeping)."""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token_hash == token_hash)
            .values(last_used_at=when)
            .execution_options(synchronize_session=False)
        )
        self.session.execute(stmt)

    def count_active_for_owner(self, owner_id: int, now: datetime) -> int:
        stmt = select(func.count(RefreshToken.id)).where(
            RefreshToken.owner_id == owner_id,
            RefreshToken.expires_at > now,
        )
        return int(self.session.execute(stmt).scalar_one())
