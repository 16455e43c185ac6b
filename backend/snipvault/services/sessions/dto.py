# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Opaque refresh bearer (``rtk_...``), shown once.
    :type refresh_token: str
    :param expires_in_seconds: Access-token lifetime.
    :type expires_in_seconds: int
    :param user_id: Internal id of the session owner.
    :type user_id: int
    :param created: ``True`` when the exchange created the account.
    :type created: bool
    """

    access_token: str = field(repr=False)
    refresh_token: str = field(repr=False)
    expires_in_seconds: int
    user_id: int
    created: bool = False

    def as_body(self) -> dict[str, object]:
        """Client-facing JSON body."""
        return {
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
            "expiresInSeconds": self.expires_in_seconds,
        }


@dataclass(frozen=True, slots=True)
class LogoutOut:
    """
    Result of a logout.

    :param revoked: Number of refresh records deleted (0 or 1 for a single
        logout, any count for logout-everywhere).
    :type revoked: int
    """

    revoked: int
