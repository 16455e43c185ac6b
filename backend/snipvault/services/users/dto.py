# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class UserOut:
    """Profile of the authenticated user."""

    id: int
    email: str
    display_name: str | None
    avatar_url: str | None
    last_login_at: datetime | None
    created_at: datetime | None


@dataclass(frozen=True, slots=True)
class UserUpdateIn:
    """
    Editable profile fields; only keys present in ``fields`` are applied.

    :param fields: Subset of ``display_name`` / ``avatar_url``.
    :type fields: dict[str, str | None]
    """

    fields: dict[str, str | None]


@dataclass(frozen=True, slots=True)
class UserStatsOut:
    """
    Usage counters for the profile page.

    :param snippet_count: Snippets owned.
    :param total_usage: Sum of snippet usage counters.
    :param active_sessions: Live refresh tokens.
    :param member_since: Account creation time.
    """

    snippet_count: int
    total_usage: int
    active_sessions: int
    member_since: datetime | None
