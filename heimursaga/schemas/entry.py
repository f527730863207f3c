"""Entry Pydantic schemas — list items, detail view, toggles, creation."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serialises with camelCase keys, accepts either spelling on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EntryAuthorOut(CamelModel):
    username: str
    creator: bool = False


class EntryExpeditionOut(CamelModel):
    id: str
    title: str
    entries_count: Optional[int] = None


class EntryListItem(CamelModel):
    id: str
    title: str
    content: str
    place: str
    date: Optional[datetime] = None
    public: bool
    sponsored: bool
    is_draft: bool
    entry_type: str
    word_count: int = 0
    author: Optional[EntryAuthorOut] = None
    expedition: Optional[EntryExpeditionOut] = None
    liked: bool = False
    bookmarked: bool = False
    likes_count: int = 0
    bookmarks_count: int = 0
    comments_count: int = 0
    comments_enabled: bool = True
    created_at: Optional[datetime] = None


class EntryListOut(CamelModel):
    data: List[EntryListItem]
    results: int


class EntryDetailOut(CamelModel):
    id: str
    title: str
    content: str
    place: str
    date: Optional[datetime] = None
    public: bool
    sponsored: bool
    is_draft: bool
    visibility: str
    entry_type: str
    author: Optional[EntryAuthorOut] = None
    trip: Optional[EntryExpeditionOut] = None
    liked: Optional[bool] = None
    bookmarked: Optional[bool] = None
    created_by_me: Optional[bool] = None
    following_author: Optional[bool] = None
    likes_count: int = 0
    bookmarks_count: int = 0
    comments_count: int = 0
    views_count: int = 0
    comments_enabled: bool = True
    entry_number: Optional[int] = None
    expedition_day: Optional[int] = None
    created_at: Optional[datetime] = None


class DraftOut(CamelModel):
    id: str
    title: str
    content: str
    place: str
    date: Optional[datetime] = None
    public: bool
    sponsored: bool
    is_draft: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DraftListOut(CamelModel):
    data: List[DraftOut]
    results: int


class EntryCreate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    place: Optional[str] = None
    date: Optional[datetime] = None
    public: bool = True
    sponsored: bool = False
    is_draft: bool = False
    comments_enabled: bool = True
    expedition_id: Optional[str] = None
    entry_type: Optional[str] = None
    visibility: Optional[str] = None


class EntryUpdate(CamelModel):
    """Partial update; only fields present in the request body are applied."""
    title: Optional[str] = None
    content: Optional[str] = None
    place: Optional[str] = None
    date: Optional[datetime] = None
    public: Optional[bool] = None
    sponsored: Optional[bool] = None
    is_draft: Optional[bool] = None
    comments_enabled: Optional[bool] = None
    expedition_id: Optional[str] = None
    entry_type: Optional[str] = None
    visibility: Optional[str] = None


class EntryCreatedOut(CamelModel):
    id: str


class EntryQuery(CamelModel):
    context: Optional[str] = None


class LikeOut(CamelModel):
    likes_count: int


class BookmarkOut(CamelModel):
    bookmarks_count: int
