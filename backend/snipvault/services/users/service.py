# snipvault/services/users/service.py
from __future__ import annotations

import logging

from snipvault.models.base import as_utc
from snipvault.models.user import User
from snipvault.services._shared.base import BaseService, ServiceContext
from snipvault.services._shared.errors import NotFoundError, ServiceError
from snipvault.services._shared.ports.refresh_token_store import RefreshTokenStore
from snipvault.services.users.dto import UserOut, UserStatsOut, UserUpdateIn

log = logging.getLogger(__name__)


def _to_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
        last_login_at=as_utc(user.last_login_at),
        created_at=as_utc(user.created_at),
    )


class UserService(BaseService):
    """
    Self-service account operations for the access-token holder.

    :param refresh_store: Used to revoke sessions and count live ones.
    :param ctx: Request context (``actor_id`` is the account).
    """

    def __init__(
        self, refresh_store: RefreshTokenStore, *, ctx: ServiceContext | None = None
    ) -> None:
        super().__init__(ctx=ctx)
        self.refresh_store = refresh_store

    def _user_id(self) -> int:
        if self.ctx.actor_id is None:
            raise ServiceError("Authenticated user required")
        return self.ctx.actor_id

    def get_profile(self) -> UserOut:
        user_id = self._user_id()
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            return _to_out(user)

    def update_profile(self, dto: UserUpdateIn) -> UserOut:
        """
        Apply a partial profile update.

        :raises ServiceError: Non-editable field.
        :raises NotFoundError: Account no longer exists.
        """
        user_id = self._user_id()
        with self.rw_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            try:
                uow.users.assign_updates(user, dto.fields)
            except ValueError as exc:
                raise ServiceError(str(exc)) from exc
            return _to_out(user)

    def stats(self) -> UserStatsOut:
        user_id = self._user_id()
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            count, usage = uow.snippets.usage_totals(user_id)
            member_since = as_utc(user.created_at)
        return UserStatsOut(
            snippet_count=count,
            total_usage=usage,
            active_sessions=self.refresh_store.count_active(user_id),
            member_since=member_since,
        )

    def delete_account(self) -> int:
        """
        Delete the account with its snippets and refresh tokens.

        Refresh tokens are revoked through the store first so non-SQL
        backends are cleared as well.

        :returns: Number of refresh tokens revoked.
        """
        user_id = self._user_id()
        revoked = self.refresh_store.revoke_all(user_id)
        with self.rw_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            uow.users.delete(user)
        log.info("user.deleted", extra={"actor_id": user_id})
        return revoked
