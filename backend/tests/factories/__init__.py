"""Factory Boy helpers wired to the project's SQLAlchemy session."""

from __future__ import annotations

import factory
from snipvault.core.extensions import db


class SQLAlchemySession:
    """Resolve the session factories persist into."""

    _session = None

    @classmethod
    def set(cls, session):
        """Pin an explicit session (``None`` restores the Flask-scoped one)."""
        cls._session = session

    @classmethod
    def get(cls):
        """Return the pinned session, or the session of the active app context.

        Raises
        ------
        RuntimeError
            If factories are used outside an application context.
        """
        if cls._session is not None:
            return cls._session
        return db.session


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Base class committing factory objects so every connection sees them."""

    class Meta:
        abstract = True
        sqlalchemy_session_factory = SQLAlchemySession.get
        sqlalchemy_session_persistence = "commit"
