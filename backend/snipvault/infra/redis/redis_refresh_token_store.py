# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import cast

import redis  # type: ignore[import-untyped]

from snipvault.services._shared.ports import (
    IssuedRefreshToken,
    RefreshTokenStore,
    RefreshTokenView,
    RotationOutcome,
    RotationResult,
)
from snipvault.services.tokens.bearer import BearerHasher, looks_like_bearer, new_bearer


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh token store.

    Each record is a hash ``rt:{digest}`` with a key TTL equal to the token
    lifetime, so expiry is enforced by Redis itself. A per-owner set
    ``rt:u:{owner_id}`` indexes the digests for bulk revocation.

    Rotation is decided by ``DEL``: Redis executes commands one at a time, so
    among concurrent deletes of the same key exactly one returns ``1``.

    :param r: A Redis client (already connected).
    :param hasher: Keyed hash for bearers.
    :param ttl: Refresh token lifetime.
    """

    r: redis.Redis
    hasher: BearerHasher
    ttl: timedelta

    # -------------------- helpers --------------------

    @staticmethod
    def _k(digest: str) -> str:
        return f"rt:{digest}"

    @staticmethod
    def _ku(owner_id: int) -> str:
        return f"rt:u:{owner_id}"

    @staticmethod
    def _to_ts(dt: datetime) -> int:
        return int(dt.timestamp())

    @staticmethod
    def _b(value: bytes | str | None, default: str = "") -> str:
        if value is None:
            return default
        return value.decode() if isinstance(value, bytes | bytearray) else str(value)

    def _live(self, digest: str) -> dict[str, str] | None:
        raw = self.r.hgetall(self._k(digest))
        if not raw:
            return None
        h = {self._b(k): self._b(v) for k, v in raw.items()}
        if int(h.get("expires_at", "0")) <= self._to_ts(datetime.now(UTC)):
            return None
        return h

    # -------------------- API ------------------------

    def issue(self, owner_id: int) -> IssuedRefreshToken:
        bearer = new_bearer()
        digest = self.hasher.digest(bearer)
        now = datetime.now(UTC)
        expires_at = now + self.ttl

        pipe = self.r.pipeline(transaction=True)
        pipe.hset(
            self._k(digest),
            mapping={
                "owner_id": str(owner_id),
                "created_at": str(self._to_ts(now)),
                "expires_at": str(self._to_ts(expires_at)),
            },
        )
        pipe.expire(self._k(digest), max(1, int(self.ttl.total_seconds())))
        pipe.sadd(self._ku(owner_id), digest)
        pipe.execute()
        return IssuedRefreshToken(bearer=bearer, owner_id=owner_id, expires_at=expires_at)

    def lookup(self, bearer: str) -> RefreshTokenView | None:
        if not looks_like_bearer(bearer):
            return None
        h = self._live(self.hasher.digest(bearer))
        if h is None:
            return None
        return RefreshTokenView(
            owner_id=int(h["owner_id"]),
            expires_at=datetime.fromtimestamp(int(h["expires_at"]), tz=UTC),
            created_at=datetime.fromtimestamp(int(h.get("created_at", "0")), tz=UTC),
        )

    def rotate(self, old_bearer: str, owner_id: int) -> RotationOutcome:
        if not looks_like_bearer(old_bearer):
            return RotationOutcome(RotationResult.NOT_FOUND)
        digest = self.hasher.digest(old_bearer)
        h = self._live(digest)
        if h is None or h.get("owner_id") != str(owner_id):
            return RotationOutcome(RotationResult.NOT_FOUND)

        # Single arbiter: only one concurrent DEL of the key returns 1
        if cast(int, self.r.delete(self._k(digest))) != 1:
            return RotationOutcome(RotationResult.NOT_FOUND)
        self.r.srem(self._ku(owner_id), digest)
        return RotationOutcome(RotationResult.OK, self.issue(owner_id))

    def revoke(self, bearer: str) -> bool:
        if not looks_like_bearer(bearer):
            return False
        digest = self.hasher.digest(bearer)
        owner = self.r.hget(self._k(digest), "owner_id")
        removed = cast(int, self.r.delete(self._k(digest)))
        if owner is not None:
            self.r.srem(self._ku(int(self._b(owner))), digest)
        return removed == 1

    def revoke_all(self, owner_id: int) -> int:
        key_u = self._ku(owner_id)
        digests = [self._b(m) for m in self.r.smembers(key_u)]
        if not digests:
            return 0
        pipe = self.r.pipeline(transaction=True)
        for d in digests:
            pipe.delete(self._k(d))
        pipe.delete(key_u)
        out = cast(list[int], pipe.execute())
        # Last result is the index key itself
        return sum(int(n) for n in out[:-1])

    def purge_expired(self) -> int:
        """
        Drop index entries whose record already expired.

        Redis evicts the records themselves through key TTLs; only the owner
        index sets can hold stale digests.

        :returns: Stale index entries removed.
        """
        removed = 0
        for key in self.r.scan_iter(match="rt:u:*"):
            key_u = self._b(key)
            stale = [
                self._b(m) for m in self.r.smembers(key_u) if not self.r.exists(self._k(self._b(m)))
            ]
            if stale:
                removed += cast(int, self.r.srem(key_u, *stale))
        return removed

    def count_active(self, owner_id: int) -> int:
        return sum(
            1 for m in self.r.smembers(self._ku(owner_id)) if self._live(self._b(m)) is not None
        )
