# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass

from flask import Flask
from sqlalchemy.exc import SQLAlchemyError

from snipvault.core.extensions import db
from snipvault.models.audit_entry import AuditEntry
from snipvault.services._shared.errors import AuditWriteError
from snipvault.services._shared.ports import AuditSink
from snipvault.services.audit.dto import AuditEntryIn


@dataclass(slots=True)
class SQLAuditSink(AuditSink):
    """
    Append audit entries to the ``audit_entries`` table.

    Every write pushes its own application context, which gives it its own
    scoped session: the audit insert never commits or rolls back the request's
    transaction, and it works from worker threads.

    :param app: Flask application whose database to write to.
    """

    app: Flask

    def write(self, entry: AuditEntryIn) -> None:
        with self.app.app_context():
            row = AuditEntry(
                actor_id=entry.actor_id,
                actor_email=entry.actor_email,
                action=entry.action,
                resource=entry.resource,
                resource_id=entry.resource_id,
                method=entry.method,
                path=entry.path,
                status=entry.status.value,
                status_code=entry.status_code,
                details=entry.details or None,
                request_snapshot=entry.request_snapshot,
                response_snapshot=entry.response_snapshot,
                duration_ms=entry.duration_ms,
                ip_address=entry.ip_address,
                user_agent=entry.user_agent,
            )
            try:
                db.session.add(row)
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise AuditWriteError(f"audit insert failed: {exc.__class__.__name__}") from exc
