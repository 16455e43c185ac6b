# snipvault/services/snippets/service.py
from __future__ import annotations

import logging

from snipvault.models.base import as_utc
from snipvault.models.snippet import Snippet
from snipvault.services._shared.base import BaseService, ServiceContext
from snipvault.services._shared.errors import ConflictError, NotFoundError, ServiceError
from snipvault.services.crypto.dto import EncryptedSecret
from snipvault.services.crypto.service import EncryptionService
from snipvault.services.snippets.dto import SnippetIn, SnippetOut, SnippetUpdateIn

log = logging.getLogger(__name__)

DUPLICATE_KEYWORD = "DUPLICATE_KEYWORD"


class SnippetService(BaseService):
    """
    CRUD over the caller's snippets.

    Values are sealed with :class:`EncryptionService` before they are
    assigned to the model and opened only when building :class:`SnippetOut`.
    Every lookup is scoped to the owner; somebody else's id reads as 404.

    :param crypto: Field encryption.
    :param ctx: Request context (``actor_id`` is the owner).
    """

    def __init__(self, crypto: EncryptionService, *, ctx: ServiceContext | None = None) -> None:
        super().__init__(ctx=ctx)
        self.crypto = crypto

    # ------------------------------ helpers ------------------------------

    def _owner(self) -> int:
        if self.ctx.actor_id is None:
            raise ServiceError("Authenticated owner required")
        return self.ctx.actor_id

    @staticmethod
    def _secret(row: Snippet) -> EncryptedSecret:
        return EncryptedSecret(
            ciphertext_hex=row.value_ciphertext,
            auth_tag_hex=row.value_tag,
            iv_hex=row.value_iv,
        )

    def _store(self, row: Snippet, value: str) -> None:
        sealed = self.crypto.seal(value, keyword=row.keyword, owner_id=row.owner_id)
        row.value_ciphertext = sealed.ciphertext_hex
        row.value_tag = sealed.auth_tag_hex
        row.value_iv = sealed.iv_hex

    def _to_out(self, row: Snippet) -> SnippetOut:
        return SnippetOut(
            id=row.id,
            keyword=row.keyword,
            value=self.crypto.open(self._secret(row), keyword=row.keyword, owner_id=row.owner_id),
            usage_count=row.usage_count,
            last_used_at=as_utc(row.last_used_at),
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )

    # ------------------------------ queries ------------------------------

    def list_snippets(self) -> list[SnippetOut]:
        owner_id = self._owner()
        with self.ro_uow() as uow:
            return [self._to_out(row) for row in uow.snippets.list_for_owner(owner_id)]

    def get_snippet(self, snippet_id: int) -> SnippetOut:
        owner_id = self._owner()
        with self.ro_uow() as uow:
            row = uow.snippets.get_owned(snippet_id, owner_id)
            if row is None:
                raise NotFoundError("Snippet", snippet_id)
            return self._to_out(row)

    # ------------------------------ commands -----------------------------

    def create_snippet(self, dto: SnippetIn) -> SnippetOut:
        """
        Create a snippet with an encrypted value.

        :param dto: Keyword and plaintext value.
        :returns: The stored snippet (decrypted).
        :raises ConflictError: The owner already has this keyword.
        :raises ServiceError: Invalid keyword.
        """
        owner_id = self._owner()
        with self.rw_uow() as uow:
            try:
                row = Snippet(owner_id=owner_id, keyword=dto.keyword, usage_count=0)
            except ValueError as exc:
                raise ServiceError(str(exc)) from exc
            if uow.snippets.keyword_exists(owner_id, row.keyword):
                raise ConflictError("Snippet", f"Keyword {row.keyword} already exists", DUPLICATE_KEYWORD)
            self._store(row, dto.value)
            uow.snippets.add(row)
            out = self._to_out(row)
        log.info("snippet.created", extra={"actor_id": owner_id})
        return out

    def update_snippet(self, snippet_id: int, dto: SnippetUpdateIn) -> SnippetOut:
        """
        Change keyword and/or value.

        The key is derived from the keyword, so a keyword change re-encrypts
        the current value under the new key even when no new value is given.
        """
        owner_id = self._owner()
        with self.rw_uow() as uow:
            row = uow.snippets.get_owned(snippet_id, owner_id)
            if row is None:
                raise NotFoundError("Snippet", snippet_id)

            value = dto.value
            if dto.keyword is not None and dto.keyword.strip() != row.keyword:
                if value is None:
                    value = self.crypto.open(
                        self._secret(row), keyword=row.keyword, owner_id=owner_id
                    )
                if uow.snippets.keyword_exists(owner_id, dto.keyword, exclude_id=row.id):
                    raise ConflictError(
                        "Snippet", f"Keyword {dto.keyword.strip()} already exists", DUPLICATE_KEYWORD
                    )
                try:
                    row.keyword = dto.keyword
                except ValueError as exc:
                    raise ServiceError(str(exc)) from exc

            if value is not None:
                self._store(row, value)
            uow.snippets.flush()
            out = self._to_out(row)
        return out

    def delete_snippet(self, snippet_id: int) -> None:
        owner_id = self._owner()
        with self.rw_uow() as uow:
            row = uow.snippets.get_owned(snippet_id, owner_id)
            if row is None:
                raise NotFoundError("Snippet", snippet_id)
            uow.snippets.delete(row)

    def record_usage(self, snippet_id: int) -> SnippetOut:
        """Increment the usage counter and stamp ``last_used_at``."""
        owner_id = self._owner()
        with self.rw_uow() as uow:
            row = uow.snippets.get_owned(snippet_id, owner_id)
            if row is None:
                raise NotFoundError("Snippet", snippet_id)
            uow.snippets.record_usage(row, self.now_utc())
            out = self._to_out(row)
        return out
