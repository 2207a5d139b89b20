"""
FastAPI Application Entry Point.
Initializes the FastAPI app with middleware, CORS, error handlers and routes.
"""
import asyncio
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.core.cache import cache
from app.core.database import AsyncSessionLocal, engine
from app.core.errors import AppError, Unauthenticated
from app.core.websocket import presence_hub
from app.dependencies import limiter
from app.services.moderation_service import ModerationService

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


async def sweep_expired_bans() -> None:
    """Periodically reactivate users whose temporary ban has ended."""
    while True:
        await asyncio.sleep(settings.ban_sweep_interval_seconds)
        try:
            async with AsyncSessionLocal() as db:
                await ModerationService(db).reactivate_expired_bans()
        except Exception:
            logger.exception("Ban expiry sweep failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    await cache.connect()
    sweeper = asyncio.create_task(sweep_expired_bans())
    logger.info("Application started (environment: %s)", settings.environment)
    yield
    # Shutdown
    sweeper.cancel()
    await presence_hub.shutdown()
    await cache.disconnect()
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title="Matching and Chat Server",
    description="FastAPI backend for discovery, matching, chat and moderation",
    version="1.0.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Add rate limiter state and error handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ============================================================================
# Error handlers
# ============================================================================

def _error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return _error_response(exc.status_code, exc.message, headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed JSON, missing fields and wrong types are all 400."""
    errors = exc.errors()
    if not errors:
        return _error_response(400, "Invalid request")

    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{'.'.join(location)}: {message}"
    return _error_response(400, message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", None)
    logger.error(
        "Unhandled error on %s %s (request %s)",
        request.method, request.url.path, request_id,
        exc_info=exc,
    )
    return _error_response(500, "Internal server error", {REQUEST_ID_HEADER: request_id or ""})


# ============================================================================
# Middleware
# ============================================================================

@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Attach a correlation ID to every request and echo it on the response."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


# CORS Middleware
# Note: push-channel CORS is handled by Socket.IO itself (via cors_allowed_origins)
cors_origins = settings.get_allowed_origins_list()
logger.info("CORS allowed origins: %s", cors_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)


# ============================================================================
# Health Check Endpoints
# ============================================================================

@app.get("/health", tags=["Health"])
async def health_check():
    """Basic health check endpoint."""
    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "environment": settings.environment,
        }
    )


@app.get("/health/ready", tags=["Health"])
async def readiness_check():
    """
    Readiness check endpoint.
    Verifies database and cache connectivity.
    """
    checks = {
        "database": False,
        "redis": "not_configured" if not settings.redis_url else False,
    }

    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
            checks["database"] = True
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Readiness database check failed: %s", e)

    if settings.redis_url:
        checks["redis"] = await cache.ping()

    # Consider redis as healthy if not configured
    redis_ok = checks["redis"] == "not_configured" or checks["redis"] is True
    all_healthy = checks["database"] and redis_ok
    status_code = 200 if all_healthy else 503

    return JSONResponse(
        status_code=status_code,
        content={
            "status": "ready" if all_healthy else "not ready",
            "checks": checks,
        }
    )


# Include API routers
from app.api.v1 import admin, auth, blocks, chats, matches, reports, users  # noqa: E402

app.include_router(
    auth.router,
    prefix="/api/auth",
    tags=["Authentication"]
)

app.include_router(
    users.router,
    prefix="/users",
    tags=["Users"]
)

app.include_router(
    matches.router,
    prefix="/api/matches",
    tags=["Matches"]
)

app.include_router(
    chats.router,
    prefix="/api/chats",
    tags=["Chats"]
)

app.include_router(
    reports.router,
    prefix="/api/reports",
    tags=["Reports"]
)

app.include_router(
    blocks.router,
    prefix="/api/blocks",
    tags=["Blocks"]
)

app.include_router(
    admin.router,
    prefix="/admin",
    tags=["Admin"]
)

# Save reference to FastAPI app (for testing)
fastapi_app = app

# Socket.IO wraps the FastAPI app: it serves /ws/ and hands everything else to FastAPI
app = presence_hub.get_asgi_app(fastapi_app)
