"""Factory Boy definition for :class:`snipvault.models.user.User`."""

from __future__ import annotations

import factory
from snipvault.models.user import User
from tests.factories import BaseFactory


class UserFactory(BaseFactory):
    """Build persisted :class:`User` rows as if created by an exchange."""

    class Meta:
        model = User

    id = None  # let autoincrement handle it
    external_subject_id = factory.Sequence(lambda n: f"firebase-uid-{n:04d}")
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    display_name = factory.LazyAttribute(lambda o: o.email.split("@")[0])
    avatar_url = None
