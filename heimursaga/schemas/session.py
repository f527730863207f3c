"""Resolved identity of the caller, supplied by the authentication layer."""

from typing import Optional

from pydantic import BaseModel

from heimursaga.models.explorer import ExplorerRole


class SessionContext(BaseModel):
    explorer_id: Optional[int] = None
    role: Optional[ExplorerRole] = None
    ip: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.explorer_id is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == ExplorerRole.ADMIN


ANONYMOUS = SessionContext()
