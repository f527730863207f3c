"""Entry service — feed, detail, engagement toggles, drafts, create, update and delete.

Read path: visibility → sponsorship gate → derived fields → response, with
view tracking scheduled after the detail response is built. Write path:
engagement ledger, then the LIKE notification trigger.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from heimursaga.config import settings
from heimursaga.exceptions import (
    ServiceBadRequestException,
    ServiceForbiddenException,
    ServiceNotFoundException,
    service_errors,
)
from heimursaga.models.engagement import EntryBookmark, EntryLike
from heimursaga.models.entry import Entry, EntryType, EntryVisibility, generate_public_id
from heimursaga.models.expedition import Expedition
from heimursaga.models.explorer import Explorer, ExplorerRole
from heimursaga.models.follow import ExplorerFollow
from heimursaga.schemas.entry import (
    BookmarkOut,
    DraftListOut,
    DraftOut,
    EntryAuthorOut,
    EntryCreate,
    EntryCreatedOut,
    EntryDetailOut,
    EntryExpeditionOut,
    EntryListItem,
    EntryListOut,
    EntryQuery,
    EntryUpdate,
    LikeOut,
)
from heimursaga.schemas.session import SessionContext
from heimursaga.services.derived import DerivedFieldsCalculator
from heimursaga.services.engagement import EngagementKind, EngagementLedger
from heimursaga.services.events import EventDispatcher, Events, dispatcher
from heimursaga.services.sponsorship import SponsorshipGate
from heimursaga.services.views import ViewTracker, view_tracker
from heimursaga.services.visibility import is_visible, visibility_clause

logger = logging.getLogger(__name__)

FOLLOWING_CONTEXT = "following"
LIST_PREVIEW_LENGTH = 200
DRAFT_PREVIEW_LENGTH = 140


def _word_count(content: Optional[str]) -> int:
    return len(content.split()) if content else 0


def _author_out(author: Optional[Explorer]) -> Optional[EntryAuthorOut]:
    if author is None:
        return None
    return EntryAuthorOut(username=author.username, creator=author.role == ExplorerRole.CREATOR)


def _enum_value(value) -> str:
    return getattr(value, "value", value)


class EntryService:
    def __init__(
        self,
        db: AsyncSession,
        events: EventDispatcher = dispatcher,
        views: ViewTracker = view_tracker,
    ):
        self.db = db
        self.events = events
        self.views = views
        self.sponsorships = SponsorshipGate(db)
        self.derived = DerivedFieldsCalculator(db)
        self.ledger = EngagementLedger(db, events=events)

    # ═══════════════════════════════════════════════════════════════
    #  Helpers
    # ═══════════════════════════════════════════════════════════════

    async def _engaged_entry_ids(self, relation, explorer_id: Optional[int], entry_ids: List[int]) -> Set[int]:
        if not explorer_id or not entry_ids:
            return set()
        result = await self.db.execute(
            select(relation.entry_id).where(
                relation.explorer_id == explorer_id,
                relation.entry_id.in_(entry_ids),
            )
        )
        return set(result.scalars().all())

    async def _visible_entry(self, public_id: Optional[str], session: SessionContext) -> Entry:
        """Fetch an entry the session may see; hidden and missing entries look the same."""
        if not public_id:
            raise ServiceNotFoundException("entry not found")
        result = await self.db.execute(select(Entry).where(Entry.public_id == public_id))
        entry = result.scalar_one_or_none()
        if entry is None or not is_visible(entry, session):
            raise ServiceNotFoundException("entry not found")
        return entry

    # ═══════════════════════════════════════════════════════════════
    #  Reads
    # ═══════════════════════════════════════════════════════════════

    @service_errors
    async def get_entries(self, query: EntryQuery, session: SessionContext) -> EntryListOut:
        """Published entries visible to the session, newest first, sponsored ones gated."""
        conditions = [visibility_clause(session), Entry.is_draft.is_(False)]
        order_by = Entry.date.desc()

        if query.context == FOLLOWING_CONTEXT:
            if not session.is_authenticated:
                raise ServiceForbiddenException()
            follows = await self.db.execute(
                select(ExplorerFollow.followee_id).where(ExplorerFollow.follower_id == session.explorer_id)
            )
            followed_ids = follows.scalars().all()
            if not followed_ids:
                return EntryListOut(data=[], results=0)
            conditions.append(Entry.author_id.in_(followed_ids))
            order_by = Entry.updated_at.desc()

        result = await self.db.execute(
            select(Entry, Explorer)
            .join(Explorer, Entry.author_id == Explorer.id)
            .where(*conditions)
            .order_by(order_by, Entry.id.desc())
            .limit(settings.ENTRIES_PAGE_LIMIT)
        )
        rows = result.all()
        authors: Dict[int, Explorer] = {explorer.id: explorer for _, explorer in rows}

        entries = await self.sponsorships.filter_entries([entry for entry, _ in rows], session)
        entry_ids = [entry.id for entry in entries]

        liked = await self._engaged_entry_ids(EntryLike, session.explorer_id, entry_ids)
        bookmarked = await self._engaged_entry_ids(EntryBookmark, session.explorer_id, entry_ids)

        expeditions: Dict[int, Expedition] = {}
        expedition_ids = {entry.expedition_id for entry in entries if entry.expedition_id}
        if expedition_ids:
            exp_result = await self.db.execute(select(Expedition).where(Expedition.id.in_(expedition_ids)))
            expeditions = {exp.id: exp for exp in exp_result.scalars().all()}

        data = []
        for entry in entries:
            expedition = expeditions.get(entry.expedition_id)
            data.append(
                EntryListItem(
                    id=entry.public_id,
                    title=entry.title,
                    content=(entry.content or "")[:LIST_PREVIEW_LENGTH],
                    place=entry.place,
                    date=entry.date,
                    public=entry.public,
                    sponsored=entry.sponsored,
                    is_draft=entry.is_draft,
                    entry_type=_enum_value(entry.entry_type) or EntryType.STANDARD.value,
                    word_count=_word_count(entry.content),
                    author=_author_out(authors.get(entry.author_id)),
                    expedition=(
                        EntryExpeditionOut(id=expedition.public_id, title=expedition.title)
                        if expedition else None
                    ),
                    liked=entry.id in liked,
                    bookmarked=entry.id in bookmarked,
                    likes_count=entry.likes_count,
                    bookmarks_count=entry.bookmarks_count,
                    comments_count=entry.comments_count,
                    comments_enabled=entry.comments_enabled,
                    created_at=entry.created_at,
                )
            )

        return EntryListOut(data=data, results=len(data))

    @service_errors
    async def get_entry_by_id(self, public_id: str, session: SessionContext) -> EntryDetailOut:
        entry = await self._visible_entry(public_id, session)

        if entry.sponsored and not await self.sponsorships.can_view_sponsored(entry, session):
            raise ServiceForbiddenException("Access denied to sponsored content")

        author = await self.db.get(Explorer, entry.author_id)
        expedition = None
        if entry.expedition_id:
            expedition = await self.db.get(Expedition, entry.expedition_id)
        derived = await self.derived.compute(entry, expedition)

        liked = bookmarked = following = None
        if session.is_authenticated:
            liked = entry.id in await self._engaged_entry_ids(EntryLike, session.explorer_id, [entry.id])
            bookmarked = entry.id in await self._engaged_entry_ids(EntryBookmark, session.explorer_id, [entry.id])
            follow = await self.db.get(ExplorerFollow, (session.explorer_id, entry.author_id))
            following = follow is not None

        detail = EntryDetailOut(
            id=entry.public_id,
            title=entry.title,
            content=entry.content,
            place=entry.place,
            date=entry.date,
            public=entry.public,
            sponsored=entry.sponsored,
            is_draft=entry.is_draft,
            visibility=_enum_value(entry.visibility) or EntryVisibility.PUBLIC.value,
            entry_type=_enum_value(entry.entry_type) or EntryType.STANDARD.value,
            author=_author_out(author),
            trip=(
                EntryExpeditionOut(
                    id=expedition.public_id,
                    title=expedition.title,
                    entries_count=derived.expedition_entries_count or 0,
                )
                if expedition else None
            ),
            liked=liked,
            bookmarked=bookmarked,
            created_by_me=(entry.author_id == session.explorer_id) if session.is_authenticated else None,
            following_author=following,
            likes_count=entry.likes_count,
            bookmarks_count=entry.bookmarks_count,
            comments_count=entry.comments_count,
            views_count=entry.views_count,
            comments_enabled=entry.comments_enabled,
            entry_number=derived.entry_number,
            expedition_day=derived.expedition_day,
            created_at=entry.created_at,
        )

        if self.views.qualifies(entry, session.explorer_id):
            self.views.schedule(entry.public_id, session.explorer_id, session.ip)

        return detail

    @service_errors
    async def get_drafts(self, session: SessionContext) -> DraftListOut:
        if not session.is_authenticated:
            raise ServiceForbiddenException()

        conditions = (
            Entry.author_id == session.explorer_id,
            Entry.is_draft.is_(True),
            Entry.deleted_at.is_(None),
        )
        total = await self.db.execute(select(func.count(Entry.id)).where(*conditions))
        result = await self.db.execute(
            select(Entry)
            .where(*conditions)
            .order_by(Entry.updated_at.desc(), Entry.id.desc())
            .limit(settings.DRAFTS_PAGE_LIMIT)
        )
        drafts = [
            DraftOut(
                id=entry.public_id,
                title=entry.title,
                content=(entry.content or "")[:DRAFT_PREVIEW_LENGTH],
                place=entry.place,
                date=entry.date,
                public=entry.public,
                sponsored=entry.sponsored,
                is_draft=entry.is_draft,
                created_at=entry.created_at,
                updated_at=entry.updated_at,
            )
            for entry in result.scalars().all()
        ]
        return DraftListOut(data=drafts, results=total.scalar() or 0)

    # ═══════════════════════════════════════════════════════════════
    #  Engagement
    # ═══════════════════════════════════════════════════════════════

    async def _toggle(self, public_id: str, session: SessionContext, kind: EngagementKind):
        if not session.is_authenticated:
            raise ServiceNotFoundException("entry not found")
        entry = await self._visible_entry(public_id, session)
        return await self.ledger.toggle(entry.id, session.explorer_id, kind)

    @service_errors
    async def toggle_like(self, public_id: str, session: SessionContext) -> LikeOut:
        result = await self._toggle(public_id, session, EngagementKind.LIKE)
        return LikeOut(likes_count=result.count)

    @service_errors
    async def toggle_bookmark(self, public_id: str, session: SessionContext) -> BookmarkOut:
        result = await self._toggle(public_id, session, EngagementKind.BOOKMARK)
        return BookmarkOut(bookmarks_count=result.count)

    # ═══════════════════════════════════════════════════════════════
    #  Authoring
    # ═══════════════════════════════════════════════════════════════

    @staticmethod
    def _require_publishable(title: Optional[str], content: Optional[str], place: Optional[str]) -> None:
        if not title or not title.strip():
            raise ServiceBadRequestException("Title is required for published entries")
        if not content:
            raise ServiceBadRequestException("Content is required for published entries")
        if not place or not place.strip():
            raise ServiceBadRequestException("Place is required for published entries")

    @staticmethod
    def _entry_type(value: Optional[str]) -> EntryType:
        try:
            return EntryType(value or EntryType.STANDARD.value)
        except ValueError:
            allowed = ", ".join(t.value for t in EntryType)
            raise ServiceBadRequestException(f"Invalid entry type: {value}. Must be one of: {allowed}")

    @staticmethod
    def _visibility(value: Optional[str]) -> EntryVisibility:
        try:
            return EntryVisibility(value or EntryVisibility.PUBLIC.value)
        except ValueError:
            allowed = ", ".join(v.value for v in EntryVisibility)
            raise ServiceBadRequestException(f"Invalid visibility: {value}. Must be one of: {allowed}")

    async def _owned_expedition_id(self, public_id: Optional[str], author_id: int) -> Optional[int]:
        if not public_id:
            return None
        result = await self.db.execute(
            select(Expedition.id).where(
                Expedition.public_id == public_id,
                Expedition.author_id == author_id,
                Expedition.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()

    def _announce(self, entry: Entry) -> None:
        self.events.trigger(
            Events.ENTRY_CREATED,
            {
                "entry_id": entry.public_id,
                "creator_id": entry.author_id,
                "title": entry.title,
                "content": entry.content,
                "place": entry.place,
                "date": entry.date,
            },
        )

    @service_errors
    async def create_entry(self, payload: EntryCreate, session: SessionContext) -> EntryCreatedOut:
        if not session.is_authenticated:
            raise ServiceForbiddenException()

        content = (payload.content or "").strip()
        if not payload.is_draft:
            self._require_publishable(payload.title, content, payload.place)
        entry_type = self._entry_type(payload.entry_type)
        visibility = self._visibility(payload.visibility)
        expedition_id = await self._owned_expedition_id(payload.expedition_id, session.explorer_id)

        published = payload.public and not payload.is_draft
        entry = Entry(
            public_id=generate_public_id(),
            author_id=session.explorer_id,
            expedition_id=expedition_id,
            title=payload.title or "",
            content=content,
            place=payload.place or "",
            date=payload.date or datetime.now(timezone.utc),
            public=payload.public,
            sponsored=payload.sponsored,
            is_draft=payload.is_draft,
            comments_enabled=payload.comments_enabled,
            email_sent=published,
            entry_type=entry_type,
            visibility=visibility,
        )
        self.db.add(entry)
        await self.db.execute(
            update(Explorer)
            .where(Explorer.id == session.explorer_id)
            .values(entries_count=Explorer.entries_count + 1)
        )
        await self.db.commit()
        logger.info(f"Explorer {session.explorer_id} created entry {entry.public_id}")

        if published:
            self._announce(entry)
        return EntryCreatedOut(id=entry.public_id)

    @service_errors
    async def update_entry(self, public_id: str, payload: EntryUpdate, session: SessionContext) -> None:
        """
        Apply the fields present in ``payload``. Authors edit their own entries,
        admins any entry.

        The first time an entry goes public and published (a draft being
        published, or a private entry made public) ``ENTRY_CREATED`` is
        triggered; ``email_sent`` keeps it from firing again.
        """
        if not session.is_authenticated:
            raise ServiceForbiddenException()
        if not public_id:
            raise ServiceNotFoundException("entry not found")

        result = await self.db.execute(
            select(Entry).where(Entry.public_id == public_id, Entry.deleted_at.is_(None))
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise ServiceNotFoundException("entry not found")
        if entry.author_id != session.explorer_id and not session.is_admin:
            raise ServiceForbiddenException()

        changes = payload.model_dump(exclude_unset=True)
        if "content" in changes:
            changes["content"] = (changes["content"] or "").strip()
        if "entry_type" in changes:
            changes["entry_type"] = self._entry_type(changes["entry_type"])
        if "visibility" in changes:
            changes["visibility"] = self._visibility(changes["visibility"])
        if "expedition_id" in changes:
            changes["expedition_id"] = await self._owned_expedition_id(changes["expedition_id"], entry.author_id)
        for name in ("title", "place", "public", "sponsored", "is_draft", "comments_enabled", "date"):
            # null means "leave as is" for columns that cannot hold it
            if name in changes and changes[name] is None:
                del changes[name]

        was_private = not entry.public
        was_draft = entry.is_draft
        public = changes.get("public", entry.public)
        is_draft = changes.get("is_draft", entry.is_draft)

        if not is_draft:
            self._require_publishable(
                changes.get("title", entry.title),
                changes.get("content", entry.content),
                changes.get("place", entry.place),
            )

        announce = (
            ((was_private and public) or (was_draft and not is_draft))
            and not entry.email_sent
            and public
            and not is_draft
        )

        for name, value in changes.items():
            setattr(entry, name, value)
        if announce:
            entry.email_sent = True
        await self.db.commit()
        logger.info(f"Explorer {session.explorer_id} updated entry {public_id}")

        if announce:
            self._announce(entry)

    @service_errors
    async def delete_entry(self, public_id: str, session: SessionContext) -> None:
        """Soft-delete. Admins may delete any entry, everyone else only their own."""
        if not session.is_authenticated:
            raise ServiceForbiddenException()
        if not public_id:
            raise ServiceNotFoundException("entry not found")

        conditions = [Entry.public_id == public_id, Entry.deleted_at.is_(None)]
        if not session.is_admin:
            conditions.append(Entry.author_id == session.explorer_id)

        result = await self.db.execute(select(Entry).where(*conditions))
        entry = result.scalar_one_or_none()
        if entry is None:
            raise ServiceForbiddenException()

        entry.deleted_at = datetime.now(timezone.utc)
        await self.db.commit()
        logger.info(f"Explorer {session.explorer_id} deleted entry {public_id}")
