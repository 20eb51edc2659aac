"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.cs_claim.api.router import router as intent_router
from src.cs_common.database import async_session_factory, engine
from src.cs_common.errors import AppError
from src.cs_common.events import EventPublisher, InMemoryEventPublisher, RedisEventPublisher
from src.cs_common.redis_client import close_redis, get_redis
from src.cs_common.response import error_response
from src.cs_engine.application.service import build_service, set_exchange_service
from src.cs_gateway.middleware.request_log import RequestLogMiddleware
from src.cs_hook.api.router import router as hook_router
from src.cs_ledger.api.router import router as ledger_router
from src.cs_order.api.router import router as order_router

logger = logging.getLogger(__name__)


async def _build_publisher() -> EventPublisher:
    if settings.EVENTS_BACKEND == "memory":
        return InMemoryEventPublisher()
    return RedisEventPublisher(await get_redis(), settings.EVENTS_CHANNEL)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB, rebuild the in-memory state. Shutdown: dispose."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    service = build_service(settings, publisher=await _build_publisher())
    async with async_session_factory() as db:
        await service.load(db)
    set_exchange_service(service)
    logger.info("Confidential swap core ready (venue=%s)", settings.VENUE_IDENTITY)
    yield
    set_exchange_service(None)
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, exc.category.value)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(ledger_router, prefix="/api/v1")
app.include_router(order_router, prefix="/api/v1")
app.include_router(intent_router, prefix="/api/v1")
app.include_router(hook_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
