"""
Heimursaga — FastAPI application entry-point.

Run with:
    uvicorn heimursaga.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from heimursaga.config import settings
from heimursaga.database import Base, engine
from heimursaga.exceptions import ServiceException
from heimursaga.services.events import dispatcher
from heimursaga.services.notifications import NotificationService
from heimursaga.services.views import view_tracker

import heimursaga.models  # noqa: F401  (register tables on Base.metadata)

# ── Import routers ──
from heimursaga.routers import entries

logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)


# ── Lifespan: create tables, wire event handlers, flush background work ──
@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    NotificationService().register(dispatcher)
    yield
    await view_tracker.drain()
    await dispatcher.drain()
    dispatcher.clear()


app = FastAPI(
    title=settings.APP_NAME,
    description="Travel journal entries — visibility, sponsorship access and engagement.",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Client IP behind a proxy (used for anonymous view dedup) ──
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=("*",))


@app.exception_handler(ServiceException)
async def service_exception_handler(request: Request, exc: ServiceException):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ── Register API routers ──
app.include_router(entries.router)


if settings.ENVIRONMENT != "production":
    from heimursaga.routers.auth import _set_auth_cookie

    @app.get("/mock-login/{explorer_id}")
    def mock_login(explorer_id: int):
        resp = RedirectResponse(url="/posts", status_code=303)
        return _set_auth_cookie(resp, explorer_id)


@app.get("/health")
async def health():
    return {"status": "ok", "app": settings.APP_NAME}
