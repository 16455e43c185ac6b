"""Unit tests for SnippetRepository."""

from datetime import UTC, datetime

import pytest
from snipvault.repositories.base import Pagination
from snipvault.repositories.snippet import SnippetRepository
from tests.factories.snippet import SnippetFactory
from tests.factories.user import UserFactory


class TestSnippetRepository:
    @pytest.fixture()
    def repo(self):
        return SnippetRepository()

    @pytest.fixture()
    def owner(self, session):
        return UserFactory()

    def test_get_owned(self, repo, owner):
        mine = SnippetFactory(owner=owner)
        theirs = SnippetFactory()
        assert repo.get_owned(mine.id, owner.id).id == mine.id
        assert repo.get_owned(theirs.id, owner.id) is None

    def test_keyword_exists(self, repo, owner):
        s = SnippetFactory(owner=owner, keyword="/k")
        assert repo.keyword_exists(owner.id, " /k ")
        assert not repo.keyword_exists(owner.id, "/k", exclude_id=s.id)
        assert not repo.keyword_exists(owner.id + 1000, "/k")

    def test_list_for_owner(self, repo, owner):
        a = SnippetFactory(owner=owner)
        b = SnippetFactory(owner=owner)
        SnippetFactory()
        assert {s.id for s in repo.list_for_owner(owner.id)} == {a.id, b.id}

    def test_record_usage(self, repo, owner, session):
        s = SnippetFactory(owner=owner, usage_count=5)
        when = datetime(2026, 1, 2, tzinfo=UTC)
        repo.record_usage(s, when)
        session.commit()
        assert s.usage_count == 6

    def test_usage_totals(self, repo, owner):
        SnippetFactory(owner=owner, usage_count=2)
        SnippetFactory(owner=owner, usage_count=3)
        assert repo.usage_totals(owner.id) == (2, 5)
        assert repo.usage_totals(owner.id + 1000) == (0, 0)

    def test_paginate_sorts_by_whitelist(self, repo, owner):
        for n in (3, 1, 2):
            SnippetFactory(owner=owner, usage_count=n)
        page = repo.paginate(
            Pagination(page=1, limit=2, sort=["-usage_count", "nonsense"]),
            filters={"owner_id": owner.id},
        )
        assert page.total == 3
        assert [s.usage_count for s in page.items] == [3, 2]
