"""FastAPI application entrypoint."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from together import __version__
from together.api.errors import register_error_handlers
from together.api.middleware import RequestIDMiddleware
from together.api.router import api_router
from together.config import settings
from together.database import close_db
from together.services.delivery import drain_deliveries
from together.services.reset_tokens import ResetTokenStore

logger = logging.getLogger(__name__)

# Initialize Sentry for error tracking
if settings.sentry_dsn:
    import sentry_sdk

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        traces_sample_rate=0.1 if settings.is_production else 1.0,
        send_default_pii=False,
    )
    logger.info("Sentry initialized")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Database schema is managed by Alembic migrations
    reset_tokens = getattr(app.state, "reset_tokens", None)
    if reset_tokens is None:
        reset_tokens = ResetTokenStore()
        app.state.reset_tokens = reset_tokens
    await reset_tokens.connect()
    yield
    await drain_deliveries()
    await reset_tokens.close()
    await close_db()


app = FastAPI(
    title="Together API",
    description="Identity verification and account recovery for the Together website",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.debug_enabled else None,
    redoc_url="/api/redoc" if settings.debug_enabled else None,
    openapi_url="/api/openapi.json" if settings.debug_enabled else None,
)

# Request ID middleware for distributed tracing
app.add_middleware(RequestIDMiddleware)  # type: ignore[arg-type]

# CORS middleware
app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "X-Request-ID"],
    expose_headers=["X-Request-ID", "Retry-After"],
)

register_error_handlers(app)

app.include_router(api_router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    from together.logging import get_uvicorn_log_config

    uvicorn.run(
        "together.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_config=get_uvicorn_log_config(),
    )
