# comments in English; reST docstrings
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

REDACTED = "[REDACTED]"

# Matched case-insensitively against snapshot keys at any depth
SENSITIVE_KEYS = frozenset(
    {
        "value",
        "accesstoken",
        "access_token",
        "refreshtoken",
        "refresh_token",
        "authorization",
        "password",
        "token",
    }
)


class AuditStatus(str, Enum):
    """Outcome class of an audited operation."""

    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"


def classify_status(status_code: int) -> AuditStatus:
    """
    Classify an HTTP status code.

    :param status_code: Response status code.
    :returns: ``SUCCESS`` below 400, ``FAILURE`` for 4xx, ``ERROR`` from 500.
    """
    if status_code < 400:
        return AuditStatus.SUCCESS
    if status_code < 500:
        return AuditStatus.FAILURE
    return AuditStatus.ERROR


def redact(payload: Any) -> Any:
    """Return a copy of ``payload`` with sensitive keys masked."""
    if isinstance(payload, Mapping):
        return {
            k: REDACTED if str(k).lower() in SENSITIVE_KEYS else redact(v)
            for k, v in payload.items()
        }
    if isinstance(payload, list | tuple):
        return [redact(v) for v in payload]
    return payload


# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RequestSnapshot:
    """
    Explicit description of the request being audited.

    Built by the HTTP layer and handed down; services never reach into the
    web framework themselves.

    :param method: HTTP method.
    :param path: Request path.
    :param ip_address: Client address (after proxy resolution).
    :param user_agent: Client user agent.
    :param body: Parsed JSON body, if any (redacted on use).
    """

    method: str
    path: str
    ip_address: str | None = None
    user_agent: str | None = None
    body: Mapping[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        return {"method": self.method, "path": self.path, "body": redact(self.body or {})}


@dataclass(frozen=True, slots=True)
class AuditEntryIn:
    """
    One entry to append to the audit trail.

    :param action: Operation name (``exchange``, ``token_refresh``, ``snippet_create``...).
    :param resource: Resource family (``session``, ``snippet``, ``user``).
    :param method: HTTP method of the triggering request.
    :param path: Request path.
    :param status_code: Final HTTP status code.
    :param actor_id: Acting user id, when known.
    :param actor_email: Acting user email, when known.
    :param resource_id: Affected record id, when applicable.
    :param details: Extra structured context.
    :param request_snapshot: Redacted request description.
    :param response_snapshot: Redacted response body.
    :param duration_ms: Handler wall time.
    :param ip_address: Client address.
    :param user_agent: Client user agent.
    """

    action: str
    resource: str
    method: str
    path: str
    status_code: int
    actor_id: int | None = None
    actor_email: str | None = None
    resource_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    request_snapshot: dict[str, Any] | None = None
    response_snapshot: dict[str, Any] | None = None
    duration_ms: float = 0.0
    ip_address: str | None = None
    user_agent: str | None = None

    @property
    def status(self) -> AuditStatus:
        return classify_status(self.status_code)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: RequestSnapshot,
        *,
        action: str,
        resource: str,
        status_code: int,
        response_body: Mapping[str, Any] | None = None,
        **extra: Any,
    ) -> AuditEntryIn:
        """Build an entry from a request snapshot, redacting both bodies."""
        return cls(
            action=action,
            resource=resource,
            method=snapshot.method,
            path=snapshot.path,
            status_code=status_code,
            request_snapshot=snapshot.as_dict(),
            response_snapshot=redact(dict(response_body)) if response_body else None,
            ip_address=snapshot.ip_address,
            user_agent=snapshot.user_agent,
            **extra,
        )


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class AuditEntryOut:
    """Read-model of a persisted audit entry."""

    id: int
    action: str
    resource: str
    resource_id: str | None
    method: str
    path: str
    status: str
    status_code: int
    details: dict[str, Any] | None
    duration_ms: float
    ip_address: str | None
    created_at: datetime


@dataclass(frozen=True, slots=True)
class AuditStatsOut:
    """Per-actor counters."""

    total: int
    by_status: dict[str, int]
    by_action: dict[str, int]
