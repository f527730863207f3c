"""
Shared pytest fixtures for the Heimursaga test suite.

Every test gets its own SQLite file under ``tmp_path`` (a file rather than
``:memory:`` so concurrent sessions really use separate connections), a
session factory bound to it, and a small cast of explorers.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import heimursaga.models  # noqa: F401
from heimursaga.database import Base, engine_options
from heimursaga.models.entry import Entry
from heimursaga.models.expedition import Expedition
from heimursaga.models.explorer import Explorer, ExplorerRole
from heimursaga.models.sponsorship import Sponsorship, SponsorshipStatus
from heimursaga.schemas.session import SessionContext
from heimursaga.services.entries import EntryService
from heimursaga.services.events import EventDispatcher
from heimursaga.services.notifications import NotificationService
from heimursaga.services.views import ViewTracker

NOW = datetime.now(timezone.utc)


@pytest_asyncio.fixture
async def engine(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'heimursaga-test.db'}"
    engine = create_async_engine(url, **engine_options(url))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def events(session_factory):
    dispatcher = EventDispatcher()
    NotificationService(session_factory).register(dispatcher)
    yield dispatcher
    await dispatcher.drain()


@pytest_asyncio.fixture
async def views(session_factory):
    tracker = ViewTracker(session_factory)
    yield tracker
    await tracker.drain()


@pytest.fixture
def make_service(events, views):
    def _make(session: AsyncSession) -> EntryService:
        return EntryService(session, events=events, views=views)
    return _make


@pytest.fixture
def service(db, make_service) -> EntryService:
    return make_service(db)


@pytest_asyncio.fixture
async def explorers(session_factory) -> Dict[str, int]:
    """admin, a creator (ada) and two plain users (ben, cleo); returns name → id."""
    cast = {
        "admin": ExplorerRole.ADMIN,
        "ada": ExplorerRole.CREATOR,
        "ben": ExplorerRole.USER,
        "cleo": ExplorerRole.USER,
    }
    async with session_factory() as session:
        rows = {
            name: Explorer(username=name, email=f"{name}@example.com", role=role)
            for name, role in cast.items()
        }
        session.add_all(rows.values())
        await session.commit()
        return {name: explorer.id for name, explorer in rows.items()}


@pytest.fixture
def as_explorer(explorers):
    roles = {
        "admin": ExplorerRole.ADMIN,
        "ada": ExplorerRole.CREATOR,
        "ben": ExplorerRole.USER,
        "cleo": ExplorerRole.USER,
    }

    def _session(name: str, ip: str = "10.0.0.1") -> SessionContext:
        return SessionContext(explorer_id=explorers[name], role=roles[name], ip=ip)
    return _session


@pytest.fixture
def make_entry(session_factory):
    async def _make(author_id: int, **fields) -> Entry:
        fields.setdefault("title", "Untitled")
        fields.setdefault("content", "Somewhere along the road.")
        fields.setdefault("place", "Nowhere")
        fields.setdefault("date", NOW)
        fields.setdefault("public", True)
        fields.setdefault("is_draft", False)
        fields.setdefault("sponsored", False)
        async with session_factory() as session:
            entry = Entry(author_id=author_id, **fields)
            session.add(entry)
            await session.commit()
            await session.refresh(entry)
            return entry
    return _make


@pytest.fixture
def make_expedition(session_factory):
    async def _make(author_id: int, start_date: datetime, **fields) -> Expedition:
        fields.setdefault("title", "Expedition")
        async with session_factory() as session:
            expedition = Expedition(author_id=author_id, start_date=start_date, **fields)
            session.add(expedition)
            await session.commit()
            await session.refresh(expedition)
            return expedition
    return _make


@pytest.fixture
def make_sponsorship(session_factory):
    async def _make(sponsor_id: int, creator_id: int, **fields) -> Sponsorship:
        fields.setdefault("status", SponsorshipStatus.ACTIVE)
        fields.setdefault("expiry", NOW + timedelta(days=30))
        async with session_factory() as session:
            sponsorship = Sponsorship(sponsor_id=sponsor_id, sponsored_explorer_id=creator_id, **fields)
            session.add(sponsorship)
            await session.commit()
            return sponsorship
    return _make
