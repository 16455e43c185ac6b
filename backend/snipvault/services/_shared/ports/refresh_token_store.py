from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum, auto
from typing import Protocol

from snipvault.services.tokens.bearer import BearerHasher, new_bearer


class RotationResult(Enum):
    """Outcome of a refresh rotation attempt."""

    OK = auto()
    NOT_FOUND = auto()


@dataclass(frozen=True, slots=True)
class IssuedRefreshToken:
    """
    A freshly issued refresh token.

    :ivar bearer: Raw bearer, handed to the client exactly once.
    :ivar owner_id: Owning user id.
    :ivar expires_at: Absolute expiration (UTC).
    """

    bearer: str
    owner_id: int
    expires_at: datetime

    def __repr__(self) -> str:
        return f"IssuedRefreshToken(owner_id={self.owner_id}, expires_at={self.expires_at!r})"


@dataclass(frozen=True, slots=True)
class RefreshTokenView:
    """
    Read-model of a live refresh record.

    :ivar owner_id: Owning user id.
    :ivar expires_at: Absolute expiration (UTC).
    :ivar created_at: Issuance time (UTC).
    """

    owner_id: int
    expires_at: datetime
    created_at: datetime


@dataclass(frozen=True, slots=True)
class RotationOutcome:
    """Result of :meth:`RefreshTokenStore.rotate`; ``issued`` is set only on ``OK``."""

    result: RotationResult
    issued: IssuedRefreshToken | None = None

    @property
    def ok(self) -> bool:
        return self.result is RotationResult.OK


class RefreshTokenStore(Protocol):
    """
    Stateful store for refresh tokens.

    Implementations persist only the keyed hash of a bearer. Operations that
    cannot locate their input return a typed "not found" value (``None``,
    ``False``, ``0`` or ``RotationResult.NOT_FOUND``) instead of raising.
    Among concurrent ``rotate`` calls for the same bearer at most one
    observes ``RotationResult.OK``.
    """

    def issue(self, owner_id: int) -> IssuedRefreshToken:
        """Create a record for a brand-new bearer and return the bearer once."""

    def lookup(self, bearer: str) -> RefreshTokenView | None:
        """Return the live record for ``bearer``; unknown and expired both give ``None``."""

    def rotate(self, old_bearer: str, owner_id: int) -> RotationOutcome:
        """Invalidate ``old_bearer`` (committed first), then issue a replacement."""

    def revoke(self, bearer: str) -> bool:
        """Delete the record for ``bearer``. :returns: True if one existed."""

    def revoke_all(self, owner_id: int) -> int:
        """Delete every record of ``owner_id``. :returns: Records removed."""

    def purge_expired(self) -> int:
        """Eagerly drop expired records. :returns: Records removed."""

    def count_active(self, owner_id: int) -> int:
        """Number of live refresh tokens held by ``owner_id``."""


@dataclass(slots=True)
class _Record:
    owner_id: int
    expires_at: datetime
    created_at: datetime


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    In-memory refresh token store.

    .. note::
       A single lock serializes mutations, which gives the same "one winner"
       guarantee as the row-count check in the SQL adapter.
    """

    def __init__(self, *, secret: str = "in-memory", ttl: timedelta = timedelta(days=180)) -> None:
        self._hasher = BearerHasher(secret)
        self._ttl = ttl
        self._by_hash: dict[str, _Record] = {}
        self._lock = threading.Lock()

    # ------------------------- helpers -------------------------

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    def _issue_locked(self, owner_id: int, now: datetime) -> IssuedRefreshToken:
        bearer = new_bearer()
        expires_at = now + self._ttl
        self._by_hash[self._hasher.digest(bearer)] = _Record(
            owner_id=owner_id, expires_at=expires_at, created_at=now
        )
        return IssuedRefreshToken(bearer=bearer, owner_id=owner_id, expires_at=expires_at)

    # -------------------------- API ----------------------------

    def issue(self, owner_id: int) -> IssuedRefreshToken:
        with self._lock:
            return self._issue_locked(owner_id, self._now())

    def lookup(self, bearer: str) -> RefreshTokenView | None:
        rec = self._by_hash.get(self._hasher.digest(bearer))
        if rec is None or rec.expires_at <= self._now():
            return None
        return RefreshTokenView(
            owner_id=rec.owner_id, expires_at=rec.expires_at, created_at=rec.created_at
        )

    def rotate(self, old_bearer: str, owner_id: int) -> RotationOutcome:
        key = self._hasher.digest(old_bearer)
        with self._lock:
            now = self._now()
            rec = self._by_hash.get(key)
            if rec is None or rec.owner_id != owner_id or rec.expires_at <= now:
                return RotationOutcome(RotationResult.NOT_FOUND)
            del self._by_hash[key]
            return RotationOutcome(RotationResult.OK, self._issue_locked(owner_id, now))

    def revoke(self, bearer: str) -> bool:
        with self._lock:
            return self._by_hash.pop(self._hasher.digest(bearer), None) is not None

    def revoke_all(self, owner_id: int) -> int:
        with self._lock:
            doomed = [k for k, r in self._by_hash.items() if r.owner_id == owner_id]
            for k in doomed:
                del self._by_hash[k]
            return len(doomed)

    def purge_expired(self) -> int:
        with self._lock:
            now = self._now()
            doomed = [k for k, r in self._by_hash.items() if r.expires_at <= now]
            for k in doomed:
                del self._by_hash[k]
            return len(doomed)

    def count_active(self, owner_id: int) -> int:
        now = self._now()
        return sum(1 for r in self._by_hash.values() if r.owner_id == owner_id and r.expires_at > now)
