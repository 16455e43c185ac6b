"""Server-side record of an issued refresh token."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from snipvault.core.extensions import db

from .base import CreatedAtMixin, PKMixin, ReprMixin

if TYPE_CHECKING:
    from .user import User


class RefreshToken(PKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    Keyed hash of a refresh bearer plus its expiry.

    The raw bearer is never stored: ``token_hash`` is the hex HMAC-SHA256 of
    it under ``REFRESH_TOKEN_SECRET``. Rows are deleted on rotation, logout and
    account deletion; expired rows are ignored by lookups and removed by the
    ``tokens purge-expired`` command.
    """

    __tablename__ = "refresh_tokens"

    owner_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    owner: Mapped[User] = relationship(back_populates="refresh_tokens")

    __table_args__ = (
        UniqueConstraint("token_hash", name="uq_refresh_tokens_token_hash"),
        Index("ix_refresh_tokens_owner_id", "owner_id"),
        Index("ix_refresh_tokens_expires_at", "expires_at"),
    )
