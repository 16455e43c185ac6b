"""Refresh bearer generation and keyed hashing."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass, field

BEARER_PREFIX = "rtk_"
BEARER_ENTROPY_BYTES = 32


def new_bearer() -> str:
    """Return a fresh opaque refresh bearer (``rtk_`` + 64 hex chars)."""
    return BEARER_PREFIX + secrets.token_hex(BEARER_ENTROPY_BYTES)


def looks_like_bearer(value: str | None) -> bool:
    """Cheap shape check so obviously foreign strings skip the store."""
    if not value or not value.startswith(BEARER_PREFIX):
        return False
    body = value[len(BEARER_PREFIX) :]
    return len(body) == BEARER_ENTROPY_BYTES * 2 and all(c in "0123456789abcdef" for c in body)


@dataclass(frozen=True, slots=True)
class BearerHasher:
    """
    HMAC-SHA256 over the raw bearer under a server-side secret.

    Only the hex digest is ever persisted; equal bearers map to equal
    digests, so lookups are exact index hits rather than comparisons
    against stored plaintext.

    :param secret: ``REFRESH_TOKEN_SECRET``.
    """

    secret: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.secret:
            raise ValueError("Refresh token secret must not be empty.")

    def digest(self, bearer: str) -> str:
        return hmac.new(
            self.secret.encode("utf-8"), bearer.encode("utf-8"), hashlib.sha256
        ).hexdigest()
