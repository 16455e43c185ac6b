"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, scoped_session

from snipvault.core.extensions import db
from snipvault.repositories import (
    AuditRepository,
    RefreshTokenRepository,
    SnippetRepository,
    UserRepository,
)
from snipvault.uow.base import UnitOfWork

log = logging.getLogger(__name__)

_ISOLATION_LEVELS = ("READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE")


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=self.session)
        self.refresh_tokens = RefreshTokenRepository(session=self.session)
        self.snippets = SnippetRepository(session=self.session)
        self.audit = AuditRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    SQLAlchemy-backed UoW using the Flask-scoped session.

    The same session is shared across all repositories for a consistent
    transaction. Leaving the block without an exception commits.
    """

    def __init__(self, session: Session | None = None) -> None:
        super().__init__(session=session if session is not None else db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # No-op: the session is lazily started on the first statement.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        else:
            self.rollback()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only Unit of Work backed by the Flask-scoped SQLAlchemy session.

    - On PostgreSQL, when the session has no transaction yet, applies the
      isolation level and ``SET TRANSACTION READ ONLY``.
    - Always rolls back on exit.
    - Refuses to exit cleanly if ORM objects were added, modified or deleted.
    - Disallows ``commit()``.

    Read results should be copied into DTOs inside the ``with`` block; the
    closing rollback expires loaded instances.
    """

    def __init__(self, *, isolation_level: str | None = "READ COMMITTED") -> None:
        super().__init__(session=db.session)
        self.isolation_level = isolation_level

    def _current_session(self) -> Session:
        # scoped_session does not proxy in_transaction()
        if isinstance(self.session, scoped_session):
            return self.session()
        return self.session

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        if self._current_session().in_transaction():
            return self
        if self.session.get_bind().dialect.name != "postgresql":
            return self
        try:
            iso = (self.isolation_level or "").upper().strip()
            if iso in _ISOLATION_LEVELS:
                self.session.execute(text(f"SET TRANSACTION ISOLATION LEVEL {iso}"))
            self.session.execute(text("SET TRANSACTION READ ONLY"))
        except SQLAlchemyError as exc:
            log.warning("SET TRANSACTION directives failed (%s); continuing.", exc)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        pending = bool(self.session.new or self.session.dirty or self.session.deleted)
        self.rollback()
        if pending and exc_type is None:
            raise RuntimeError("Read-only UnitOfWork: pending ORM changes were discarded.")

    def commit(self) -> None:
        """
        Disallow commit in read-only Unit of Work.

        :raises RuntimeError: always, to prevent accidental writes.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()
