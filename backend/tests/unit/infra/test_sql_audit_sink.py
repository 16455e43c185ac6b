"""Tests for the SQL audit sink."""

from __future__ import annotations

import pytest
from snipvault.infra.sql.sql_audit_sink import SQLAuditSink
from snipvault.models.audit_entry import AppendOnlyViolation, AuditEntry
from snipvault.services._shared.errors import AuditWriteError
from snipvault.services.audit.dto import AuditEntryIn, RequestSnapshot
from sqlalchemy import select
from sqlalchemy.exc import OperationalError


@pytest.fixture
def sink(app):
    return SQLAuditSink(app)


def _entry(**kw):
    snap = RequestSnapshot(method="DELETE", path="/api/v1/snippets/3", ip_address="127.0.0.1")
    base = {"action": "snippet_delete", "resource": "snippet", "status_code": 404}
    base.update(kw)
    return AuditEntryIn.from_snapshot(snap, **base)


def test_write_persists_entry(sink, session):
    sink.write(_entry(actor_id=7, resource_id="3", details={"error": "NotFound"}))

    row = session.execute(select(AuditEntry)).scalar_one()
    assert row.actor_id == 7
    assert row.action == "snippet_delete"
    assert row.status == "failure"
    assert row.status_code == 404
    assert row.resource_id == "3"
    assert row.details == {"error": "NotFound"}
    assert row.request_snapshot["path"] == "/api/v1/snippets/3"
    assert row.ip_address == "127.0.0.1"


def test_empty_details_stored_as_null(sink, session):
    sink.write(_entry(status_code=200))
    row = session.execute(select(AuditEntry)).scalar_one()
    assert row.details is None
    assert row.status == "success"


def test_write_does_not_commit_request_session(sink, session):
    from tests.factories.user import UserFactory

    user = UserFactory.build()
    session.add(user)  # pending in the request session

    sink.write(_entry(status_code=500))
    session.rollback()

    from snipvault.models.user import User

    assert session.execute(select(User)).first() is None
    assert session.execute(select(AuditEntry.status)).scalar_one() == "error"


def test_database_failure_becomes_audit_write_error(sink, monkeypatch):
    from snipvault.core.extensions import db

    def _fail():
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(db.session, "commit", _fail)
    with pytest.raises(AuditWriteError):
        sink.write(_entry())


def test_entries_are_append_only(sink, session):
    sink.write(_entry())
    row = session.execute(select(AuditEntry)).scalar_one()
    row.action = "tampered"
    with pytest.raises(AppendOnlyViolation):
        session.flush()
    session.rollback()

    row = session.execute(select(AuditEntry)).scalar_one()
    session.delete(row)
    with pytest.raises(AppendOnlyViolation):
        session.flush()
    session.rollback()
