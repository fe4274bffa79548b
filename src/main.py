"""Main FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.exception_handlers import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.middleware.security import SecurityHeadersMiddleware
from api.routes.health import router as health_router
from api.v1 import router as v1_router
from api.v1.dependencies import get_dispatcher
from core.config import settings
from core.logging import setup_logging
from core.rate_limit import limiter, rate_limit_exceeded_handler

logger = structlog.get_logger()

# Initialize structured logging
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the side-effect worker for the lifetime of the app.

    Audit appends and invitation emails queued at shutdown get a bounded
    drain before the worker is cancelled.
    """
    dispatcher = get_dispatcher()
    dispatcher.start()
    logger.info("application_started", environment=settings.app_env)
    try:
        yield
    finally:
        await dispatcher.stop()
        logger.info("application_stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        title=settings.app_name,
        description=(
            "## Workspace Authorization & Tenancy\n\n"
            "Resolves the workspace a request operates in, authorizes actions "
            "by workspace role, manages membership invitations and keeps an "
            "audit trail of privileged changes.\n\n"
            "### Features\n"
            "- **Workspaces**: Tenants with an owner and role-based members\n"
            "- **Invitations**: Single-use, expiring email invitations\n"
            "- **Permissions**: Fixed role x resource x action matrix\n"
            "- **Audit Logs**: Append-only record of privileged actions\n\n"
            "### Authentication\n"
            "All endpoints (except `/health` and invitation lookup) require a "
            "valid JWT token in the Authorization header:\n"
            "```\nAuthorization: Bearer <your_token>\n```\n\n"
            "### Workspace selection\n"
            "Send `X-Workspace-Id` to pin a workspace; otherwise the "
            "`current-workspace-id` cookie or the oldest membership is used.\n\n"
            "### Rate Limits\n"
            "- GET endpoints: 30 requests/minute\n"
            "- POST/PATCH/DELETE: 10 requests/minute"
        ),
        version="1.0.0",
        debug=settings.debug,
        contact={
            "name": "Agency Hub Support",
        },
        license_info={
            "name": "MIT",
        },
        openapi_tags=[
            {"name": "health", "description": "Health check endpoints"},
            {"name": "workspaces", "description": "Workspace lifecycle operations"},
            {"name": "members", "description": "Workspace membership management"},
            {"name": "invitations", "description": "Membership invitation lifecycle"},
            {"name": "workspace-context", "description": "Current workspace resolution"},
            {"name": "session", "description": "Login and logout bookkeeping"},
            {"name": "permissions", "description": "Role permission lookups"},
            {"name": "audit-logs", "description": "Audit trail queries"},
        ],
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Security & tracking middleware (LIFO order - last added = outermost)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # GZip compression for responses > 1KB
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup exception handlers
    setup_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(v1_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )
