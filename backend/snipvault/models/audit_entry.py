"""Append-only audit trail entry."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Float, Index, Integer, String, event
from sqlalchemy.orm import Mapped, mapped_column

from snipvault.core.extensions import db

from .base import CreatedAtMixin, PKMixin, ReprMixin

AUDIT_STATUSES = ("success", "failure", "error")


class AppendOnlyViolation(RuntimeError):
    """Raised when code tries to modify or delete a persisted audit entry."""


class AuditEntry(PKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    One security-relevant operation, successful or not.

    ``actor_id`` is a plain integer (no foreign key) so the trail survives
    account deletion. Snapshots are stored already redacted.

    Fields
    ------
    actor_id, actor_email : int | None, str | None
        Who performed the operation, when known.
    action, resource, resource_id : str, str, str | None
        What was done and to which record.
    method, path, status_code : str, str, int
        HTTP shape of the triggering request.
    status : str
        ``success`` | ``failure`` | ``error`` (derived from ``status_code``).
    details, request_snapshot, response_snapshot : dict | None
        Structured context (JSON).
    duration_ms : float
        Handler wall time.
    ip_address, user_agent : str | None
        Client network metadata.
    """

    __tablename__ = "audit_entries"

    actor_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    actor_email: Mapped[str | None] = mapped_column(String(254), nullable=True)
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    resource: Mapped[str] = mapped_column(String(64), nullable=False)
    resource_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    method: Mapped[str] = mapped_column(String(10), nullable=False)
    path: Mapped[str] = mapped_column(String(512), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    status_code: Mapped[int] = mapped_column(Integer, nullable=False)
    details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    request_snapshot: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    response_snapshot: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    duration_ms: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)

    __table_args__ = (
        Index("ix_audit_entries_actor_id_created_at", "actor_id", "created_at"),
        Index("ix_audit_entries_action", "action"),
        Index("ix_audit_entries_status", "status"),
    )


@event.listens_for(AuditEntry, "before_update")
def _reject_update(mapper, connection, target) -> None:  # pragma: no cover - guard
    raise AppendOnlyViolation(f"Audit entry {target.id} is append-only.")


@event.listens_for(AuditEntry, "before_delete")
def _reject_delete(mapper, connection, target) -> None:  # pragma: no cover - guard
    raise AppendOnlyViolation(f"Audit entry {target.id} cannot be deleted.")
