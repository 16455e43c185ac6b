# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """
    Verified content of an access token.

    :param user_id: Internal user id (the ``sub`` claim).
    :type user_id: int
    :param email: Email carried in the token, if present.
    :type email: str | None
    :param expires_at: Absolute expiration (UTC).
    :type expires_at: datetime
    """

    user_id: int
    email: str | None
    expires_at: datetime
