"""Procedures API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map TramitesError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Services (and the database, for the sql backend) built on startup via lifespan
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tramites.api.error_handlers import register_error_handlers
from tramites.api.routes import citizens, debts, health, payments, procedures
from tramites.config import get_settings
from tramites.infrastructure.database import init_db
from tramites.infrastructure.observability import setup_logging
from tramites.services.container import build_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = None
    if settings.storage_backend == "sql":
        db = init_db(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
        if settings.database_create_schema:
            await db.create_schema()
    # Tests may pre-populate app.state.services with their own doubles.
    if getattr(app.state, "services", None) is None:
        app.state.services = build_services(settings, db)
    logger.info(f"Procedures API started ({settings.storage_backend} storage)")
    yield
    logger.info("Procedures API shutting down")
    if db is not None:
        await db.dispose()


app = FastAPI(title="Procedures API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(citizens.router)
app.include_router(procedures.router)
app.include_router(debts.router)
app.include_router(payments.router)

register_error_handlers(app)
