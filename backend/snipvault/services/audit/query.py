# snipvault/services/audit/query.py
from __future__ import annotations

from snipvault.models.audit_entry import AUDIT_STATUSES, AuditEntry
from snipvault.models.base import as_utc
from snipvault.repositories.base import Page
from snipvault.services._shared.base import BaseService
from snipvault.services._shared.errors import ServiceError
from snipvault.services.audit.dto import AuditEntryOut, AuditStatsOut

MAX_PAGE_SIZE = 100


def _to_out(row: AuditEntry) -> AuditEntryOut:
    return AuditEntryOut(
        id=row.id,
        action=row.action,
        resource=row.resource,
        resource_id=row.resource_id,
        method=row.method,
        path=row.path,
        status=row.status,
        status_code=row.status_code,
        details=row.details,
        duration_ms=row.duration_ms,
        ip_address=row.ip_address,
        created_at=as_utc(row.created_at),
    )


class AuditQueryService(BaseService):
    """Read access to the caller's own audit trail."""

    def list_entries(
        self,
        actor_id: int,
        *,
        page: int = 1,
        limit: int = 20,
        action: str | None = None,
        status: str | None = None,
        resource: str | None = None,
    ) -> Page[AuditEntryOut]:
        """
        Page through ``actor_id``'s entries, newest first.

        :param actor_id: Owner of the trail.
        :param page: 1-based page.
        :param limit: Page size (capped at 100).
        :param action: Optional exact action filter.
        :param status: Optional status filter (``success``/``failure``/``error``).
        :param resource: Optional exact resource filter (``session``, ``snippet``, ...).
        :raises ServiceError: On an unknown status filter.
        """
        if status is not None and status not in AUDIT_STATUSES:
            raise ServiceError(f"Unknown audit status: {status}")
        filters = {
            k: v
            for k, v in (("action", action), ("status", status), ("resource", resource))
            if v
        }
        pagination = self.ensure_pagination(page=page, limit=min(limit, MAX_PAGE_SIZE))

        with self.ro_uow() as uow:
            result = uow.audit.page_for_actor(actor_id, pagination, **filters)
            items = [_to_out(row) for row in result.items]
        return Page(items=items, total=result.total, page=result.page, limit=result.limit)

    def stats(self, actor_id: int) -> AuditStatsOut:
        with self.ro_uow() as uow:
            by_status = uow.audit.status_counts(actor_id)
            by_action = uow.audit.action_counts(actor_id)
        return AuditStatsOut(
            total=sum(by_status.values()),
            by_status={s: by_status.get(s, 0) for s in AUDIT_STATUSES},
            by_action=by_action,
        )
