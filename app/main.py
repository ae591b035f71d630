"""
FastAPI Application Entry Point.
Initializes the FastAPI app with middleware, CORS, and routes.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.core.cache import cache
from app.core.database import AsyncSessionLocal, engine
from app.core.log_config import configure_logging
from app.core.websocket import connection_manager

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    await cache.connect()
    logger.info(f"Chirp server started ({settings.environment})")
    yield
    # Shutdown
    await cache.disconnect()
    await engine.dispose()


# Initialize rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"],
    enabled=settings.rate_limit_enabled,
)


# Initialize FastAPI application
app = FastAPI(
    title="Chirp Server",
    description="FastAPI backend for the Chirp social app: tweets, follows, communities, direct messages and notifications",
    version="1.0.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Add rate limiter state and error handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
# Applies the default per-client limit to every route
app.add_middleware(SlowAPIMiddleware)


# CORS Middleware
# Socket.IO handles CORS for its own endpoint (cors_allowed_origins)
cors_origins = settings.get_allowed_origins_list()
logger.info(f"CORS allowed origins: {cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health Check Endpoints
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
        "redis": "not_configured" if not cache.redis else False,
    }

    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
            checks["database"] = True
    except SQLAlchemyError as e:
        logger.warning(f"Readiness check: database unavailable: {e}")

    if cache.redis:
        try:
            checks["redis"] = bool(await cache.redis.ping())
        except (RedisError, OSError) as e:
            logger.warning(f"Readiness check: redis unavailable: {e}")

    # Redis is optional
    redis_ok = checks["redis"] == "not_configured" or checks["redis"] is True
    all_healthy = checks["database"] and redis_ok

    return JSONResponse(
        status_code=200 if all_healthy else 503,
        content={
            "status": "ready" if all_healthy else "not ready",
            "checks": checks,
        }
    )


@app.get("/health/websocket", tags=["Health"])
async def websocket_health_check():
    """WebSocket configuration, for debugging clients."""
    return JSONResponse(
        status_code=200,
        content={
            "status": "configured",
            "websocket_endpoint": "/socket.io/",
            "active_connections": len(connection_manager.connections),
            "active_users": len(connection_manager.user_sessions),
            "config": {
                "path": "/socket.io",
                "cors_origins": settings.allowed_origins,
                "heartbeat_interval": settings.ws_heartbeat_interval,
            },
        }
    )


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Chirp Server API",
        "version": "1.0.0",
        "docs": "/docs" if settings.debug else "Documentation disabled in production",
    }


# Include API routers
from app.api.v1 import communities, conversations, messages, notifications, tweets, users

app.include_router(
    conversations.router,
    prefix="/api/v1/conversations",
    tags=["Conversations"]
)

app.include_router(
    messages.router,
    prefix="/api/v1/messages",
    tags=["Messages"]
)

app.include_router(
    notifications.router,
    prefix="/api/v1/notifications",
    tags=["Notifications"]
)

app.include_router(
    tweets.router,
    prefix="/api/v1/tweets",
    tags=["Tweets"]
)

app.include_router(
    users.router,
    prefix="/api/v1/users",
    tags=["Users"]
)

app.include_router(
    communities.router,
    prefix="/api/v1/communities",
    tags=["Communities"]
)

# Socket.IO wraps the FastAPI app: it serves /socket.io/* and forwards
# everything else. Keep a reference to the FastAPI app for tests.
fastapi_app = app

app = connection_manager.get_asgi_app(fastapi_app)
