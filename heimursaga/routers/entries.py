"""Entries router — feed, detail, drafts, create, update, delete, like and bookmark."""

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from heimursaga.database import get_db
from heimursaga.routers.auth import get_session_context
from heimursaga.schemas.entry import (
    BookmarkOut,
    DraftListOut,
    EntryCreate,
    EntryCreatedOut,
    EntryDetailOut,
    EntryListOut,
    EntryQuery,
    EntryUpdate,
    LikeOut,
)
from heimursaga.schemas.session import SessionContext
from heimursaga.services.entries import EntryService

router = APIRouter(prefix="/posts", tags=["posts"])


def get_entry_service(db: AsyncSession = Depends(get_db)) -> EntryService:
    return EntryService(db)


@router.get("/drafts", response_model=DraftListOut)
async def get_drafts(
    session: SessionContext = Depends(get_session_context),
    service: EntryService = Depends(get_entry_service),
):
    """The caller's most recently edited drafts."""
    return await service.get_drafts(session)


@router.get("", response_model=EntryListOut)
async def get_entries(
    context: Optional[str] = None,
    session: SessionContext = Depends(get_session_context),
    service: EntryService = Depends(get_entry_service),
):
    return await service.get_entries(EntryQuery(context=context), session)


@router.get("/{public_id}", response_model=EntryDetailOut)
async def get_entry(
    public_id: str,
    session: SessionContext = Depends(get_session_context),
    service: EntryService = Depends(get_entry_service),
):
    return await service.get_entry_by_id(public_id, session)


@router.post("", response_model=EntryCreatedOut, status_code=status.HTTP_201_CREATED)
async def create_entry(
    body: EntryCreate,
    session: SessionContext = Depends(get_session_context),
    service: EntryService = Depends(get_entry_service),
):
    return await service.create_entry(body, session)


@router.put("/{public_id}")
async def update_entry(
    public_id: str,
    body: EntryUpdate,
    session: SessionContext = Depends(get_session_context),
    service: EntryService = Depends(get_entry_service),
):
    await service.update_entry(public_id, body, session)
    return {"ok": True}


@router.delete("/{public_id}")
async def delete_entry(
    public_id: str,
    session: SessionContext = Depends(get_session_context),
    service: EntryService = Depends(get_entry_service),
):
    await service.delete_entry(public_id, session)
    return {"ok": True}


@router.post("/{public_id}/like", response_model=LikeOut)
async def like_entry(
    public_id: str,
    session: SessionContext = Depends(get_session_context),
    service: EntryService = Depends(get_entry_service),
):
    """Toggle the caller's like; returns the entry's new like count."""
    return await service.toggle_like(public_id, session)


@router.post("/{public_id}/bookmark", response_model=BookmarkOut)
async def bookmark_entry(
    public_id: str,
    session: SessionContext = Depends(get_session_context),
    service: EntryService = Depends(get_entry_service),
):
    """Toggle the caller's bookmark; returns the entry's new bookmark count."""
    return await service.toggle_bookmark(public_id, session)
