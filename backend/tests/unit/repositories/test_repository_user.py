"""Unit tests for UserRepository."""

import pytest
from snipvault.repositories.user import UserRepository
from tests.factories.user import UserFactory


class TestUserRepository:
    """Ensure ``UserRepository`` performs core persistence operations."""

    @pytest.fixture()
    def repo(self):
        return UserRepository()

    def test_get_by_subject(self, repo, session):
        u = UserFactory(external_subject_id="uid-42")
        assert repo.get_by_subject("uid-42").id == u.id
        assert repo.get_by_subject("uid-missing") is None

    def test_get_by_email_is_case_insensitive(self, repo, session):
        u = UserFactory(email="carol@example.com")
        assert repo.get_by_email("  Carol@Example.com").id == u.id

    def test_email_taken_by_other(self, repo, session):
        UserFactory(external_subject_id="uid-a", email="a@example.com")
        assert repo.email_taken_by_other("a@example.com", "uid-b")
        assert not repo.email_taken_by_other("a@example.com", "uid-a")
        assert not repo.email_taken_by_other("free@example.com", "uid-b")

    def test_assign_updates_whitelist(self, repo, session):
        u = UserFactory()
        repo.assign_updates(u, {"display_name": "New"})
        assert u.display_name == "New"
        with pytest.raises(ValueError, match="email"):
            repo.assign_updates(u, {"email": "x@example.com"})

    def test_find_one_ignores_unknown_filters(self, repo, session):
        u = UserFactory(email="d@example.com")
        assert repo.find_one(email="d@example.com", nonsense=1).id == u.id
