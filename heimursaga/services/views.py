"""Entry view tracking, detached from the read that triggers it.

Every qualifying view bumps ``views_count``. A dedup row per viewer (or per
IP for anonymous viewers) is inserted and the unique constraint rejects
repeats; the rejection is expected and ignored. Nothing here ever raises to
the reader.
"""

import logging
from typing import Optional

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from heimursaga.database import get_session_factory
from heimursaga.models.engagement import EntryView
from heimursaga.models.entry import Entry
from heimursaga.utils.background import BackgroundRunner

logger = logging.getLogger(__name__)


class ViewTracker:
    def __init__(self, session_factory: async_sessionmaker = None):
        self._session_factory = session_factory
        self._runner = BackgroundRunner("views")

    @property
    def session_factory(self) -> async_sessionmaker:
        return self._session_factory or get_session_factory()

    @staticmethod
    def qualifies(entry: Entry, viewer_id: Optional[int]) -> bool:
        """Authors reading their own entry, drafts and private entries are not counted."""
        if viewer_id is not None and viewer_id == entry.author_id:
            return False
        return bool(entry.public) and not entry.is_draft

    def schedule(self, public_id: str, viewer_id: Optional[int] = None, viewer_ip: Optional[str] = None) -> None:
        self._runner.spawn(self.record_view, public_id, viewer_id, viewer_ip)

    async def drain(self) -> None:
        await self._runner.drain()

    async def record_view(
        self, public_id: str, viewer_id: Optional[int] = None, viewer_ip: Optional[str] = None
    ) -> None:
        try:
            await self._record(public_id, viewer_id, viewer_ip)
        except Exception:
            logger.exception(f"Failed to track view of entry {public_id}")

    async def _record(self, public_id: str, viewer_id: Optional[int], viewer_ip: Optional[str]) -> None:
        async with self.session_factory() as db:
            result = await db.execute(select(Entry.id).where(Entry.public_id == public_id))
            entry_id = result.scalar_one_or_none()
            if entry_id is None:
                return

            await db.execute(
                update(Entry)
                .where(Entry.id == entry_id)
                .values(views_count=Entry.views_count + 1, updated_at=Entry.updated_at)
            )
            await db.commit()

            if viewer_id is None and not viewer_ip:
                return

            try:
                await db.execute(
                    insert(EntryView).values(entry_id=entry_id, viewer_id=viewer_id, viewer_ip=viewer_ip)
                )
                await db.commit()
            except IntegrityError:
                await db.rollback()
                logger.debug(f"Repeat view of entry {entry_id} by {viewer_id or viewer_ip}")


view_tracker = ViewTracker()
