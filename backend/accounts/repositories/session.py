"""Session store: persistence of issued-credential rows.

The repository only stores and retrieves :class:`UserSession` rows. Deciding
when a row is created, superseded or revoked belongs to the session
lifecycle service.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any, cast

from sqlalchemy import select, update

from accounts.models.session import TokenType, UserSession
from accounts.repositories.base import BaseRepository, Page, Pagination, paginate_select


class SessionRepository(BaseRepository[UserSession]):
    """Persistence-only repository for :class:`UserSession`."""

    model = UserSession

    def _filterable_fields(self):
        return {
            "user_id": UserSession.user_id,
            "token_type": UserSession.token_type,
            "active": UserSession.active,
        }

    def _searchable_fields(self):
        return {
            "ip": UserSession.ip,
            "os": UserSession.os,
            "device": UserSession.device,
            "browser": UserSession.browser,
        }

    def _updatable_fields(self):
        return {"active"}

    # ------------------------------- Lookups --------------------------------

    def insert(self, record: UserSession) -> uuid.UUID:
        """Persist a new session row and return its id."""
        self.add(record)
        return record.id

    def find_by_id(
        self, session_id: uuid.UUID, *, for_update: bool = False, **filters: Any
    ) -> UserSession | None:
        """Fetch a session by id, narrowed by optional equality filters.

        :param session_id: Session primary key.
        :param for_update: Lock the row (``SELECT ... FOR UPDATE``) when supported.
        :param filters: Extra whitelisted equality filters (``user_id``, ``active``...).
        :returns: Matching row or ``None``.
        """
        stmt = select(UserSession).where(UserSession.id == session_id)
        stmt = self._apply_equality_filters(stmt, filters)
        if for_update:
            stmt = stmt.with_for_update()
        return cast(UserSession | None, self.session.execute(stmt).scalars().first())

    def find_by_user_and_token(
        self,
        user_id: uuid.UUID,
        token: str,
        token_type: TokenType = TokenType.ACCESS,
        *,
        active: bool | None = True,
    ) -> UserSession | None:
        """Locate the row holding exactly ``token`` for ``user_id``.

        :param user_id: Owning user.
        :param token: Signed token string as issued.
        :param token_type: Token type tag of the row.
        :param active: Restrict to active (``True``) or inactive rows; ``None`` for any.
        :returns: Matching row or ``None``.
        """
        stmt = select(UserSession).where(
            UserSession.user_id == user_id,
            UserSession.token == token,
            UserSession.token_type == token_type,
        )
        if active is not None:
            stmt = stmt.where(UserSession.active.is_(active))
        return cast(UserSession | None, self.session.execute(stmt).scalars().first())

    # ------------------------------- Mutations ------------------------------

    def deactivate(self, record: UserSession) -> UserSession:
        return self.update(record, active=False)

    def bulk_deactivate(self, user_id: uuid.UUID) -> int:
        """Set every session row of ``user_id`` inactive; return the affected row count."""
        stmt = (
            update(UserSession)
            .where(UserSession.user_id == user_id, UserSession.active.is_(True))
            .values(active=False)
            .execution_options(synchronize_session="fetch")
        )
        result = self.session.execute(stmt)
        return int(result.rowcount or 0)

    # ------------------------------- Listing --------------------------------

    def paginate(
        self,
        user_id: uuid.UUID,
        pagination: Pagination,
        *,
        search: Mapping[str, str | None] | None = None,
    ) -> Page[UserSession]:
        """Page through the active sessions of ``user_id``, newest first.

        :param user_id: Owning user.
        :param pagination: Page number and size.
        :param search: Substring filters on ``ip``/``os``/``device``/``browser``.
        :returns: :class:`Page` with items and metadata.
        """
        stmt = select(UserSession).where(
            UserSession.user_id == user_id,
            UserSession.active.is_(True),
        )
        stmt = self._apply_contains_filters(stmt, search)
        stmt = stmt.order_by(UserSession.created_at.desc(), UserSession.id.asc())

        items, total = paginate_select(
            self.session, stmt, page=pagination.page, limit=pagination.limit
        )
        return Page(items=items, total=total, page=pagination.page, limit=pagination.limit)
