"""Unit tests for AuditRepository."""

import pytest
from snipvault.models import AuditEntry
from snipvault.repositories.audit import AuditRepository
from snipvault.repositories.base import Pagination


def _entry(actor_id, action="exchange", status="success", code=200):
    return AuditEntry(
        actor_id=actor_id, action=action, resource="session", method="POST",
        path="/auth/exchange", status=status, status_code=code,
    )


class TestAuditRepository:
    @pytest.fixture()
    def repo(self):
        return AuditRepository()

    def test_page_for_actor_newest_first(self, repo, session):
        first = repo.add(_entry(1, "exchange"))
        second = repo.add(_entry(1, "logout"))
        repo.add(_entry(2))
        session.commit()

        page = repo.page_for_actor(1, Pagination(page=1, limit=10, sort=[]))
        assert page.total == 2
        assert [e.id for e in page.items] == [second.id, first.id]

    def test_counts(self, repo, session):
        repo.add(_entry(1, "exchange"))
        repo.add(_entry(1, "exchange", "failure", 401))
        repo.add(_entry(1, "logout"))
        session.commit()
        assert repo.status_counts(1) == {"success": 2, "failure": 1}
        assert repo.action_counts(1) == {"exchange": 2, "logout": 1}

    def test_delete_is_not_supported(self, repo, session):
        row = repo.add(_entry(1))
        with pytest.raises(NotImplementedError):
            repo.delete(row)
        session.rollback()
