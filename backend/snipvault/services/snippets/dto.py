# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class SnippetIn:
    """
    Input DTO to create a snippet.

    :param keyword: Trigger keyword (``/name``).
    :type keyword: str
    :param value: Plaintext value; encrypted before it reaches storage.
    :type value: str
    """

    keyword: str
    value: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class SnippetUpdateIn:
    """
    Partial update. ``None`` means "leave unchanged".

    :param keyword: New keyword.
    :type keyword: str | None
    :param value: New plaintext value.
    :type value: str | None
    """

    keyword: str | None = None
    value: str | None = field(default=None, repr=False)


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class SnippetOut:
    """Decrypted snippet as returned to its owner."""

    id: int
    keyword: str
    value: str = field(repr=False)
    usage_count: int = 0
    last_used_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
