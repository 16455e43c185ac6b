"""Verification and normalization of external identity assertions."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from snipvault.services._shared.errors import IdentityFailureReason, IdentityVerificationError
from snipvault.services._shared.ports.identity_verifier import IdentityVerifier
from snipvault.services.identity.dto import IdentityClaims

log = logging.getLogger(__name__)


class IdentityBroker:
    """
    Turn an opaque provider assertion into :class:`IdentityClaims`.

    The verifier decides *whether* the assertion is genuine; the broker
    decides whether the claims are usable. Anything the verifier raises
    besides :class:`IdentityVerificationError` is logged and reported as
    ``UNKNOWN`` so provider internals never reach the client.

    :param verifier: Identity oracle adapter.
    """

    def __init__(self, verifier: IdentityVerifier) -> None:
        self.verifier = verifier

    def verify_assertion(self, assertion: str) -> IdentityClaims:
        """
        Verify ``assertion`` and normalize its claims.

        :param assertion: Raw provider token (no ``Bearer`` prefix).
        :returns: Normalized claims.
        :raises IdentityVerificationError: With the categorized reason.
        """
        if not assertion or not assertion.strip():
            raise IdentityVerificationError(IdentityFailureReason.MALFORMED)
        try:
            raw = self.verifier.verify(assertion.strip())
        except IdentityVerificationError as exc:
            log.info("identity.rejected", extra={"reason": exc.reason.value})
            raise
        except Exception:
            log.exception("identity.verifier_error")
            raise IdentityVerificationError(IdentityFailureReason.UNKNOWN) from None
        return self._normalize(raw)

    @staticmethod
    def _normalize(raw: Mapping[str, Any]) -> IdentityClaims:
        subject = raw.get("uid") or raw.get("sub") or raw.get("user_id")
        email = raw.get("email")
        if not isinstance(subject, str) or not subject.strip():
            log.info("identity.rejected", extra={"reason": "missing_subject"})
            raise IdentityVerificationError(IdentityFailureReason.MALFORMED)
        if not isinstance(email, str) or "@" not in email:
            log.info("identity.rejected", extra={"reason": "missing_email"})
            raise IdentityVerificationError(IdentityFailureReason.MALFORMED)

        email = email.strip().lower()
        name = raw.get("name")
        display_name = name.strip() if isinstance(name, str) and name.strip() else None
        picture = raw.get("picture")
        return IdentityClaims(
            subject_id=subject.strip(),
            email=email,
            display_name=display_name or email.split("@", 1)[0],
            avatar_url=picture if isinstance(picture, str) and picture else None,
        )
