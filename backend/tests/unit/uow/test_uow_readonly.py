import pytest
from snipvault.models.user import User
from snipvault.uow import (
    SQLAlchemyReadOnlyUnitOfWork as ROuow,
)
from snipvault.uow import (
    SQLAlchemyUnitOfWork as RWuow,
)
from sqlalchemy import select
from sqlalchemy.orm import scoped_session
from tests.factories.user import UserFactory


class TestSQLAlchemyReadOnlyUnitOfWork:
    def test_allows_reads(self, app, db):
        """
        Read operations should work normally within RO UoW.
        """
        with RWuow() as uow:
            uow.session.add(UserFactory.build())

        with ROuow() as uow:
            assert uow.session.query(User).count() == 1

    def test_enters_on_the_flask_scoped_session_inside_a_transaction(self, app, db):
        """
        The Flask-SQLAlchemy session is a scoped_session; entering must work
        whether or not it already holds a transaction.
        """
        assert isinstance(db.session, scoped_session)
        UserFactory()
        db.session.execute(select(User)).all()
        assert db.session().in_transaction()

        with ROuow() as uow:
            assert uow.session.query(User).count() == 1

        with ROuow() as uow:
            assert uow.session.query(User).count() == 1

    def test_disallows_commit(self, app, db):
        """
        RO UoW must reject commit() by design.
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="does not allow commit"):
            uow.commit()

    def test_pending_changes_are_discarded_and_reported(self, app, db):
        """
        Leaving the RO scope with dirty ORM state rolls back and raises.
        """
        with RWuow() as uow:
            user = UserFactory.build()
            uow.session.add(user)
            uow.session.flush()
            user_id = user.id
            original_email = user.email

        with pytest.raises(RuntimeError, match="pending ORM changes"), ROuow() as uow:
            uow.session.get(User, user_id).email = "mutated-in-ro@example.com"

        with RWuow() as uow:
            assert uow.session.get(User, user_id).email == original_email

    def test_exception_inside_scope_propagates_unchanged(self, app, db):
        """
        An error raised in the block wins over the pending-changes check.
        """
        with pytest.raises(KeyError), ROuow() as uow:
            uow.session.add(UserFactory.build())
            raise KeyError("boom")

        assert db.session.query(User).count() == 0

    def test_isolation_hint_is_ignored_off_postgres(self, app, db):
        """
        On SQLite no SET TRANSACTION directive is issued.
        """
        with ROuow(isolation_level="SERIALIZABLE") as uow:
            assert uow.session.query(User).count() == 0
