"""Snippet repository; all lookups are scoped to an owner."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import func, select

from snipvault.models.snippet import Snippet
from snipvault.repositories.base import BaseRepository


class SnippetRepository(BaseRepository[Snippet]):
    """Persistence-only repository for :class:`Snippet`."""

    model = Snippet

    def _sortable_fields(self):
        return {
            "keyword": Snippet.keyword,
            "usage_count": Snippet.usage_count,
            "last_used_at": Snippet.last_used_at,
            "created_at": Snippet.created_at,
            "updated_at": Snippet.updated_at,
        }

    def _filterable_fields(self):
        return {"owner_id": Snippet.owner_id, "keyword": Snippet.keyword}

    def get_owned(self, snippet_id: int, owner_id: int) -> Snippet | None:
        """Fetch a snippet only if it belongs to ``owner_id``.

        :param snippet_id: Snippet primary key.
        :param owner_id: Requesting user id.
        :returns: Snippet or ``None`` when missing or owned by someone else.
        """
        stmt = select(Snippet).where(Snippet.id == snippet_id, Snippet.owner_id == owner_id)
        return cast(Snippet | None, self.session.execute(stmt).scalars().first())

    def keyword_exists(
        self, owner_id: int, keyword: str, *, exclude_id: int | None = None
    ) -> bool:
        stmt = select(Snippet.id).where(
            Snippet.owner_id == owner_id, Snippet.keyword == keyword.strip()
        )
        if exclude_id is not None:
            stmt = stmt.where(Snippet.id != exclude_id)
        return self.session.execute(stmt).first() is not None

    def list_for_owner(self, owner_id: int) -> list[Snippet]:
        """All snippets of ``owner_id``, most recently updated first."""
        stmt = (
            select(Snippet)
            .where(Snippet.owner_id == owner_id)
            .order_by(Snippet.updated_at.desc(), Snippet.id.desc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def record_usage(self, snippet: Snippet, when: datetime) -> Snippet:
        snippet.usage_count = (snippet.usage_count or 0) + 1
        snippet.last_used_at = when
        self.flush()
        return snippet

    def usage_totals(self, owner_id: int) -> tuple[int, int]:
        """Return ``(snippet_count, total_usage)`` for ``owner_id``."""
        stmt = select(
            func.count(Snippet.id), func.coalesce(func.sum(Snippet.usage_count), 0)
        ).where(Snippet.owner_id == owner_id)
        count, usage = self.session.execute(stmt).one()
        return int(count), int(usage)
