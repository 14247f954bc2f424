"""DNS Monitor: FastAPI Application Entry Point.

Periodic DNS snapshots with change detection for one domain.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session

from dns_monitor.config import settings
from dns_monitor.database import engine, init_db, test_connection
from dns_monitor.analyzer.pipeline import run_check
from dns_monitor.scheduler.jobs import report_check, start_scheduler, stop_scheduler
from dns_monitor.api.check_routes import router as check_router
from dns_monitor.api.snapshot_routes import router as snapshot_router
from dns_monitor.core.logging import get_logger

logger = get_logger("main")

IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


def initial_check() -> None:
    """Take a first snapshot on startup when none exists yet."""
    if not settings.domain:
        logger.warning("No domain configured, skipping startup check")
        return
    with Session(engine) as session:
        result = run_check(session, domain=settings.domain)
    report_check(result)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("DNS Monitor starting up...")
    logger.info(f"Environment: {'SERVERLESS' if IS_SERVERLESS else 'LOCAL'}")
    # Test connection first
    db_ok = test_connection()
    if db_ok:
        try:
            init_db()
        except Exception as e:
            logger.error(f"Table creation failed: {e}")
    else:
        logger.error("Database NOT connected, endpoints will fail")
    if db_ok and settings.check_on_startup:
        initial_check()
    if not IS_SERVERLESS:
        start_scheduler()
    yield
    if not IS_SERVERLESS:
        stop_scheduler()
    logger.info("DNS Monitor shut down")


app = FastAPI(
    title="DNS Monitor",
    description="Scheduled DNS snapshots for a domain with TTL-insensitive change detection and bounded history.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(check_router)
app.include_router(snapshot_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "dns-monitor",
        "version": "1.0.0",
        "domain": settings.domain,
    }
