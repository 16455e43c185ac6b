"""User repository: lookups by external subject and email."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from snipvault.models.user import User
from snipvault.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`."""

    model = User

    def _filterable_fields(self):
        return {"email": User.email, "external_subject_id": User.external_subject_id}

    def _updatable_fields(self):
        """Profile fields a user may edit themselves."""
        return {"display_name", "avatar_url"}

    def get_by_subject(self, subject_id: str) -> User | None:
        """Fetch a user by the identity provider's subject id.

        :param subject_id: External subject identifier.
        :type subject_id: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.external_subject_id == subject_id)
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == email.lower().strip())
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def email_taken_by_other(self, email: str, subject_id: str) -> bool:
        """Return ``True`` when ``email`` belongs to a different subject."""
        stmt = select(User.id).where(
            User.email == email.lower().strip(),
            User.external_subject_id != subject_id,
        )
        return self.session.execute(stmt).first() is not None
