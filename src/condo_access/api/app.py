"""ASGI entry point: wires routers, middleware and access-error handling."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from condo_access.api.middleware import RequestLoggingMiddleware
from condo_access.api.routes.account import router as account_router
from condo_access.api.routes.condominiums import router as condominiums_router
from condo_access.api.routes.modules import router as modules_router
from condo_access.config import settings
from condo_access.errors import AccessError, StoreUnavailableError
from condo_access.integrations.sessions import ExpiringSessionStore
from condo_access.logging_config import configure_logging
from condo_access.storage.database import async_session, engine

logger = structlog.get_logger()

STORE_RETRY_AFTER_SECONDS = 5
DB_PROBE_TIMEOUT = 5.0


async def _expire_device_sessions(
    store: ExpiringSessionStore[object], every_seconds: int
) -> None:
    while True:
        await asyncio.sleep(every_seconds)
        try:
            removed = await asyncio.to_thread(store.cleanup)
        except Exception:
            logger.exception("device_sessions_cleanup_failed")
            continue
        if removed:
            logger.debug("device_sessions_expired", removed=removed)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Own the device-session store and the engine pool for the app's lifetime."""
    configure_logging(
        environment=str(settings.environment), log_level=settings.log_level
    )

    app.state.device_sessions = ExpiringSessionStore(
        default_ttl_seconds=settings.device_session_ttl_seconds
    )
    sweeper = asyncio.create_task(
        _expire_device_sessions(
            app.state.device_sessions, settings.session_cleanup_interval_seconds
        )
    )

    if settings.jwt_secret is None:
        logger.warning("jwt_secret_missing", effect="bearer tokens rejected")
    if settings.dev_identity_enabled:
        logger.warning("dev_identity_header_enabled")
    logger.info("condo_access_started", environment=str(settings.environment))
    try:
        yield
    finally:
        sweeper.cancel()
        await engine.dispose()
        logger.info("condo_access_stopped")


app = FastAPI(
    title="Condo Access",
    description="Tenant and role authorization context for condominium management",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.is_dev,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allowed_methods,
    allow_headers=settings.cors_allowed_headers,
)


async def _probe_database() -> str:
    try:
        async with async_session() as session:
            await asyncio.wait_for(
                session.execute(text("SELECT 1")), timeout=DB_PROBE_TIMEOUT
            )
    except (TimeoutError, SQLAlchemyError) as exc:
        logger.warning("db_probe_failed", error=type(exc).__name__)
        return f"error: {type(exc).__name__}"
    except Exception as exc:
        logger.error("db_probe_crashed", error=str(exc), exc_info=True)
        return f"error: {type(exc).__name__}"
    return "ok"


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness plus role-store reachability; needs no identity or tenant."""
    checks = {"db": await _probe_database()}
    healthy = all(result == "ok" for result in checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "ok" if healthy else "degraded",
            "checks": checks,
            "timestamp": datetime.now(UTC).isoformat(timespec="seconds"),
        },
    )


@app.exception_handler(AccessError)
async def access_error_handler(request: Request, exc: AccessError) -> JSONResponse:
    """Render guard failures as ``{"kind", "detail"}`` with the mapped status."""
    if isinstance(exc, StoreUnavailableError):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_payload(),
            headers={"Retry-After": str(STORE_RETRY_AFTER_SECONDS)},
        )
    logger.info("access_denied", kind=exc.kind, path=request.url.path)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    logger.error("unhandled_exception", exc_info=exc, path=request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


for _router in (account_router, condominiums_router, modules_router):
    app.include_router(_router, prefix="/api/v1")
