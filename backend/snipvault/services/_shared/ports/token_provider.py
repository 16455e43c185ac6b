from __future__ import annotations

from datetime import timedelta
from typing import Any, Protocol


class TokenProvider(Protocol):
    """
    Port for signing and decoding access JWTs.

    ``decode`` must raise :class:`~snipvault.services._shared.errors.TokenExpiredError`
    for a well-signed but expired token and
    :class:`~snipvault.services._shared.errors.TokenInvalidError` for anything
    else it cannot trust. Library exceptions never cross this port.
    """

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str: ...

    def decode(self, token: str) -> dict[str, Any]: ...
