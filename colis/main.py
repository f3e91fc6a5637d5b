"""
FastAPI application factory and entry point.

This module creates and configures the FastAPI application:
  1. Logging: structlog is configured before anything logs
  2. Lifespan: builds the database engine, stores the session factory on
     app.state, creates tables; disposes of the engine on shutdown
  3. CORS middleware
  4. Exception handlers: domain errors -> HTTP responses
  5. Routers

Running locally:
    uvicorn colis.main:app --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from colis.config import settings
from colis.database import Base, create_session_factory
from colis.exceptions import register_exception_handlers
from colis.logging import configure_logging, get_logger
from colis.routers import api, users

import colis.models  # noqa: F401  (registers every table on Base.metadata)

configure_logging(settings)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Own the database engine for the lifetime of the process.

    Startup creates the engine and any missing tables; shutdown closes all
    pooled connections.
    """
    # --- Startup ---
    engine, session_factory = create_session_factory(
        settings.DATABASE_URL, echo=settings.DEBUG
    )
    app.state.session_factory = session_factory
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("startup_complete", app=settings.APP_NAME, version=settings.APP_VERSION)
    yield
    # --- Shutdown ---
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Parcel delivery REST API: users, accounts and carrier profiles",
    docs_url=settings.API_DOCUMENTATION_ROUTE,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(api.router, tags=["API"])
app.include_router(users.router, prefix="/users", tags=["Users"])
