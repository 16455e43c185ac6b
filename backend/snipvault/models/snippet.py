"""Snippet model: a keyword shortcut whose value is stored encrypted."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from snipvault.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .user import User

KEYWORD_PREFIX = "/"
KEYWORD_MAX_LENGTH = 64


class Snippet(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Keyword → value substitution owned by a single user.

    The value column triple holds the AES-256-GCM output verbatim as hex:
    ciphertext, 16-byte tag and 12-byte IV. The plaintext never touches
    this table.

    Fields
    ------
    keyword : str
        Trigger text; starts with ``/`` and is unique per owner.
    value_ciphertext, value_tag, value_iv : str
        Encrypted value parts (hex).
    usage_count : int
        Number of expansions recorded by the client (``>= 0``).
    last_used_at : datetime | None
        Time of the last recorded expansion.
    """

    __tablename__ = "snippets"

    owner_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    keyword: Mapped[str] = mapped_column(String(KEYWORD_MAX_LENGTH), nullable=False)
    value_ciphertext: Mapped[str] = mapped_column(Text, nullable=False)
    value_tag: Mapped[str] = mapped_column(String(32), nullable=False)
    value_iv: Mapped[str] = mapped_column(String(24), nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    owner: Mapped[User] = relationship(back_populates="snippets")

    __table_args__ = (
        UniqueConstraint("owner_id", "keyword", name="uq_snippets_owner_id_keyword"),
        CheckConstraint("usage_count >= 0", name="usage_count_non_negative"),
        Index("ix_snippets_owner_id", "owner_id"),
    )

    @validates("keyword")
    def _normalize_keyword(self, key: str, value: str) -> str:
        """
        Trim and validate the trigger keyword.

        :param key: Field name (``keyword``).
        :param value: Raw keyword.
        :returns: Trimmed keyword.
        :raises ValueError: If empty, missing the ``/`` prefix, containing
            whitespace or too long.
        """
        if not isinstance(value, str):
            raise ValueError("Keyword is required.")
        v = value.strip()
        if not v.startswith(KEYWORD_PREFIX) or len(v) < 2:
            raise ValueError("Keyword must start with / and have at least one more character.")
        if any(ch.isspace() for ch in v):
            raise ValueError("Keyword must not contain whitespace.")
        if len(v) > KEYWORD_MAX_LENGTH:
            raise ValueError(f"Keyword must be at most {KEYWORD_MAX_LENGTH} characters.")
        return v

    @validates("usage_count")
    def _check_usage_count(self, key: str, value: int) -> int:
        if value is None or int(value) < 0:
            raise ValueError("Usage count must be >= 0.")
        return int(value)
