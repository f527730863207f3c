"""Like / bookmark toggles with their denormalized counters.

A toggle is one transaction: delete the relation row if present, otherwise
insert it, then move the matching counter by the same amount using SQL-side
arithmetic. The relation table's primary key on (entry_id, explorer_id)
turns a lost race into an ``IntegrityError`` instead of a duplicate row. That,
a lock timeout, or a serialization failure / deadlock (a bare ``DBAPIError``
under asyncpg) rolls back the whole transaction, which is then retried.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from heimursaga.config import settings
from heimursaga.exceptions import (
    ServiceBadRequestException,
    ServiceInternalException,
    ServiceNotFoundException,
)
from heimursaga.models.engagement import EntryBookmark, EntryLike
from heimursaga.models.entry import Entry
from heimursaga.models.explorer import Explorer
from heimursaga.services.events import EventDispatcher, Events, dispatcher
from heimursaga.services.notifications import like_notification_payload

logger = logging.getLogger(__name__)


class EngagementKind(str, enum.Enum):
    LIKE = "like"
    BOOKMARK = "bookmark"


RELATIONS = {
    EngagementKind.LIKE: (EntryLike, Entry.likes_count),
    EngagementKind.BOOKMARK: (EntryBookmark, Entry.bookmarks_count),
}


@dataclass
class ToggleResult:
    kind: EngagementKind
    active: bool
    count: int


class EngagementLedger:
    def __init__(
        self,
        db: AsyncSession,
        events: EventDispatcher = dispatcher,
        retry_attempts: Optional[int] = None,
    ):
        self.db = db
        self.events = events
        self.retry_attempts = settings.TOGGLE_RETRY_ATTEMPTS if retry_attempts is None else retry_attempts

    async def toggle(self, entry_id: int, explorer_id: int, kind) -> ToggleResult:
        """Flip ``explorer_id``'s like/bookmark on ``entry_id`` and return the new counter."""
        try:
            kind = EngagementKind(kind)
        except ValueError:
            raise ServiceBadRequestException(f"unknown engagement kind: {kind}")
        if not explorer_id:
            raise ServiceBadRequestException("an explorer is required to toggle engagement")

        subject = await self.db.execute(
            select(Entry.author_id, Entry.title).where(
                Entry.id == entry_id, Entry.deleted_at.is_(None)
            )
        )
        row = subject.first()
        if row is None:
            raise ServiceNotFoundException("entry not found")
        author_id, title = row

        attempts = 1 + max(self.retry_attempts, 0)
        for attempt in range(1, attempts + 1):
            try:
                result = await self._apply(entry_id, explorer_id, kind)
                await self.db.commit()
                break
            except DBAPIError as e:
                await self.db.rollback()
                logger.warning(
                    f"{kind.value} toggle conflict on entry {entry_id} by explorer {explorer_id} "
                    f"(attempt {attempt}/{attempts}): {e.__class__.__name__}"
                )
                if attempt == attempts:
                    raise ServiceInternalException() from e

        logger.info(
            f"Explorer {explorer_id} {'added' if result.active else 'removed'} "
            f"{kind.value} on entry {entry_id} (count={result.count})"
        )

        if kind == EngagementKind.LIKE and result.active and explorer_id != author_id:
            self.events.trigger(
                Events.NOTIFICATION_CREATE,
                like_notification_payload(author_id, explorer_id, entry_id, title),
            )
        return result

    async def _apply(self, entry_id: int, explorer_id: int, kind: EngagementKind) -> ToggleResult:
        relation, counter = RELATIONS[kind]

        removed = await self.db.execute(
            delete(relation).where(
                relation.entry_id == entry_id,
                relation.explorer_id == explorer_id,
            )
        )
        active = removed.rowcount == 0
        if active:
            await self.db.execute(insert(relation).values(entry_id=entry_id, explorer_id=explorer_id))
        delta = 1 if active else -1

        await self.db.execute(
            update(Entry)
            .where(Entry.id == entry_id)
            .values({counter: counter + delta, Entry.updated_at: Entry.updated_at})
        )
        if kind == EngagementKind.BOOKMARK:
            await self.db.execute(
                update(Explorer)
                .where(Explorer.id == explorer_id)
                .values(bookmarks_count=Explorer.bookmarks_count + delta)
            )

        count = await self.db.execute(select(counter).where(Entry.id == entry_id))
        return ToggleResult(kind=kind, active=active, count=count.scalar_one())
