"""Entry visibility rules, keyed by the requester's role.

Each policy carries the same rule twice: as a predicate over a loaded entry
(single-entry lookups) and as a SQL clause (list queries), so both paths
agree. Soft-deleted entries are rejected before any policy is consulted.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from sqlalchemy import and_, or_, true
from sqlalchemy.sql.elements import ColumnElement

from heimursaga.models.entry import Entry
from heimursaga.models.explorer import ExplorerRole
from heimursaga.schemas.session import SessionContext


@dataclass(frozen=True)
class VisibilityPolicy:
    admits: Callable[[Entry, SessionContext], bool]
    clause: Callable[[SessionContext], ColumnElement]


def _published(entry: Entry) -> bool:
    return bool(entry.public) and not entry.is_draft


def _published_clause() -> ColumnElement:
    return and_(Entry.public.is_(True), Entry.is_draft.is_(False))


def _own_or_published(entry: Entry, requester: SessionContext) -> bool:
    return entry.author_id == requester.explorer_id or _published(entry)


def _own_or_published_clause(requester: SessionContext) -> ColumnElement:
    return or_(Entry.author_id == requester.explorer_id, _published_clause())


ANONYMOUS_POLICY = VisibilityPolicy(
    admits=lambda entry, requester: _published(entry),
    clause=lambda requester: _published_clause(),
)

ADMIN_POLICY = VisibilityPolicy(
    admits=lambda entry, requester: True,
    clause=lambda requester: true(),
)

AUTHOR_POLICY = VisibilityPolicy(
    admits=_own_or_published,
    clause=_own_or_published_clause,
)

VISIBILITY_POLICIES: Dict[ExplorerRole, VisibilityPolicy] = {
    ExplorerRole.ADMIN: ADMIN_POLICY,
    ExplorerRole.CREATOR: AUTHOR_POLICY,
    ExplorerRole.USER: AUTHOR_POLICY,
}


def policy_for(requester: Optional[SessionContext]) -> VisibilityPolicy:
    """Unauthenticated callers and unknown roles get the anonymous policy."""
    if requester is None or not requester.is_authenticated:
        return ANONYMOUS_POLICY
    return VISIBILITY_POLICIES.get(requester.role, ANONYMOUS_POLICY)


def is_visible(entry: Entry, requester: Optional[SessionContext]) -> bool:
    if entry.deleted_at is not None:
        return False
    return policy_for(requester).admits(entry, requester)


def visibility_clause(requester: Optional[SessionContext]) -> ColumnElement:
    return and_(Entry.deleted_at.is_(None), policy_for(requester).clause(requester))
