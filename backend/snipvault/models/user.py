"""User model: the local mirror of an external identity."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from snipvault.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .refresh_token import RefreshToken
    from .snippet import Snippet


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Account record keyed by the identity provider's subject id.

    Upserted on every successful assertion exchange; never created any
    other way.

    Fields
    ------
    external_subject_id : str
        Stable subject identifier issued by the identity provider.
    email : str
        Contact email. Stored normalized (lowercase, trimmed).
    display_name : str | None
        Optional display name (defaults to the email local part).
    avatar_url : str | None
        Optional profile picture URL.
    last_login_at : datetime | None
        Timestamp of the most recent exchange.
    """

    __tablename__ = "users"

    external_subject_id: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    refresh_tokens: Mapped[list[RefreshToken]] = relationship(
        back_populates="owner",
        cascade="all, delete-orphan",
    )
    snippets: Mapped[list[Snippet]] = relationship(
        back_populates="owner",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("external_subject_id", name="uq_users_external_subject_id"),
        UniqueConstraint("email", name="uq_users_email"),
        Index("ix_users_email", "email"),
    )

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :param key: Field name (``email``).
        :type key: str
        :param value: Email to normalize.
        :type value: str
        :returns: Normalized email (lowercased/trimmed).
        :rtype: str
        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        if "@" not in v:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("external_subject_id")
    def _check_subject(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("External subject id is required.")
        return value.strip()

    @validates("display_name")
    def _trim_display_name(self, key: str, value: str | None) -> str | None:
        if value is None:
            return None
        v = value.strip()
        return v[:100] or None
