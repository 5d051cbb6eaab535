"""
FastAPI application initialization and configuration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import health
from api.routes.v1 import applications, interviews, jobs
from core.config import settings
from core.integrations.notifier import Notifier
from core.integrations.scoring import ScoringOracle
from core.locks import build_lock_manager
from core.middleware import (
    ErrorHandlingMiddleware,
    StructuredLoggingMiddleware,
    setup_error_handlers,
    setup_logging,
)
from database.engine import close_db, init_db

# Setup structured logging (do this first, before anything else)
setup_logging(
    log_level=settings.log_level,
    json_logs=settings.json_logs,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    logger.info(f"Starting {settings.app_name} in {settings.app_env} environment")
    if settings.app_env in ("development", "test"):
        await init_db()

    app.state.locks = build_lock_manager(settings)
    app.state.notifier = Notifier.from_settings(settings)
    app.state.scoring_oracle = ScoringOracle.from_settings(settings)

    yield

    logger.info(f"Shutting down {settings.app_name}")
    close_locks = getattr(app.state.locks, "close", None)
    if close_locks is not None:
        await close_locks()
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Hiring pipeline workflow engine: requisitions, applications and interviews",
    version=health.VERSION,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

setup_error_handlers(app, debug=settings.debug)

# Middleware executes in reverse order of registration
app.add_middleware(
    StructuredLoggingMiddleware,
    log_request_body=settings.log_request_body,
    max_body_size=settings.log_max_body_size,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Outermost, so errors raised by other middleware still leave as an envelope
app.add_middleware(ErrorHandlingMiddleware, debug=settings.debug)

app.include_router(health.router, tags=["Health"])
app.include_router(jobs.router, prefix=settings.api_v1_prefix)
app.include_router(applications.router, prefix=settings.api_v1_prefix)
app.include_router(interviews.router, prefix=settings.api_v1_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
