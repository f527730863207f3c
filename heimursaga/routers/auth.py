"""
Session context — resolves the caller's explorer id, role and IP from a JWT.

Tokens are issued by the upstream sign-in flow; this module only reads
them. A missing or invalid token yields an anonymous session so public
pages keep working.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.responses import Response
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from heimursaga.config import settings
from heimursaga.database import get_db
from heimursaga.models.explorer import Explorer
from heimursaga.schemas.session import SessionContext

COOKIE_KEY = "access_token"
BEARER_PREFIX = "bearer "


def create_access_token(data: dict) -> str:
    """Create a signed JWT with an expiry claim."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _set_auth_cookie(response: Response, explorer_id: int) -> Response:
    """Attach the JWT cookie to a response."""
    token = create_access_token({"sub": str(explorer_id)})
    response.set_cookie(
        key=COOKIE_KEY,
        value=token,
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
    )
    return response


def _read_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    if header.lower().startswith(BEARER_PREFIX):
        return header[len(BEARER_PREFIX):].strip() or None
    return request.cookies.get(COOKIE_KEY)


def decode_explorer_id(token: Optional[str]) -> Optional[int]:
    if not token:
        return None
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
        explorer_id = int(payload.get("sub", 0))
    except (JWTError, ValueError, TypeError):
        return None
    return explorer_id or None


async def get_session_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> SessionContext:
    """Build the caller's session; the role always comes from the explorer row, never the token."""
    ip = request.client.host if request.client else None
    explorer_id = decode_explorer_id(_read_token(request))
    if explorer_id is None:
        return SessionContext(ip=ip)

    result = await db.execute(select(Explorer.id, Explorer.role).where(Explorer.id == explorer_id))
    row = result.first()
    if row is None:
        return SessionContext(ip=ip)
    return SessionContext(explorer_id=row.id, role=row.role, ip=ip)
