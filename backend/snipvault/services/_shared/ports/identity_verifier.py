from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from snipvault.services._shared.errors import IdentityFailureReason, IdentityVerificationError


class IdentityVerifier(Protocol):
    """
    Port for the external identity oracle.

    ``verify`` returns the oracle's raw claim mapping (at least ``uid`` or
    ``sub``; typically ``email``, ``name`` and ``picture``) or raises
    :class:`IdentityVerificationError` with a categorized reason.
    """

    def verify(self, assertion: str) -> Mapping[str, Any]: ...


class StubIdentityVerifier(IdentityVerifier):
    """
    Table-driven verifier for tests and offline development.

    Register assertions with :meth:`allow` or :meth:`reject`; any other
    assertion is rejected as ``MALFORMED``.
    """

    def __init__(self, claims: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._claims: dict[str, Mapping[str, Any]] = dict(claims or {})
        self._failures: dict[str, IdentityFailureReason] = {}

    def allow(self, assertion: str, **claims: Any) -> None:
        self._claims[assertion] = claims
        self._failures.pop(assertion, None)

    def reject(self, assertion: str, reason: IdentityFailureReason) -> None:
        self._failures[assertion] = reason
        self._claims.pop(assertion, None)

    def verify(self, assertion: str) -> Mapping[str, Any]:
        if assertion in self._failures:
            raise IdentityVerificationError(self._failures[assertion])
        try:
            return dict(self._claims[assertion])
        except KeyError:
            raise IdentityVerificationError(IdentityFailureReason.MALFORMED) from None
