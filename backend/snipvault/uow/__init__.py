"""Unit of Work abstractions and concrete implementations.

This package re-exports the SQLAlchemy-backed units of work used throughout
the application, alongside the abstract contract service layers depend on.
"""

from .base import UnitOfWork
from .sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

__all__ = [
    "UnitOfWork",
    "SQLAlchemyUnitOfWork",
    "SQLAlchemyReadOnlyUnitOfWork",
]
