"""Audit repository: insert and read only."""

from __future__ import annotations

from sqlalchemy import func, select

from snipvault.models.audit_entry import AuditEntry
from snipvault.repositories.base import BaseRepository, Page, Pagination


class AuditRepository(BaseRepository[AuditEntry]):
    """Persistence-only repository for :class:`AuditEntry`.

    There is intentionally no update or delete path; the model rejects both.
    """

    model = AuditEntry

    def _sortable_fields(self):
        return {"created_at": AuditEntry.created_at, "action": AuditEntry.action}

    def _filterable_fields(self):
        return {
            "actor_id": AuditEntry.actor_id,
            "action": AuditEntry.action,
            "resource": AuditEntry.resource,
            "status": AuditEntry.status,
        }

    def delete(self, instance: AuditEntry) -> None:
        raise NotImplementedError("Audit entries are append-only.")

    def page_for_actor(
        self, actor_id: int, pagination: Pagination, **filters: str
    ) -> Page[AuditEntry]:
        """Page through one actor's entries, newest first by default."""
        if not pagination.sort:
            pagination = Pagination(
                page=pagination.page, limit=pagination.limit, sort=["-created_at"]
            )
        return self.paginate(pagination, filters={"actor_id": actor_id, **filters})

    def status_counts(self, actor_id: int) -> dict[str, int]:
        """Count entries per status for ``actor_id``."""
        stmt = (
            select(AuditEntry.status, func.count(AuditEntry.id))
            .where(AuditEntry.actor_id == actor_id)
            .group_by(AuditEntry.status)
        )
        return {status: int(n) for status, n in self.session.execute(stmt).all()}

    def action_counts(self, actor_id: int) -> dict[str, int]:
        stmt = (
            select(AuditEntry.action, func.count(AuditEntry.id))
            .where(AuditEntry.actor_id == actor_id)
            .group_by(AuditEntry.action)
        )
        return {action: int(n) for action, n in self.session.execute(stmt).all()}
