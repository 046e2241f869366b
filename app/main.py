"""
Studio Feedback Desk API - Main FastAPI Application
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.database import close_db
from app.schemas import HealthResponse
from app.services.supabase_auth import close_auth_client
from app.tasks import setup_scheduler, shutdown_scheduler
from app.middleware import (
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    get_request_size_limit,
    get_rate_limits,
)
from app.api.router import api_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "studio-feedback-desk-api"
VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: start the escalation scheduler.
    Shutdown: stop it, close the Supabase HTTP client and the engine.
    """
    logger.info("Starting up Studio Feedback Desk API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"CORS Origins: {settings.cors_origins_list}")

    # Tables are managed by Alembic
    setup_scheduler()
    logger.info("Startup complete")

    yield

    logger.info("Shutting down Studio Feedback Desk API...")
    shutdown_scheduler()
    await close_auth_client()
    await close_db()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Studio Feedback Desk API",
    description="Client feedback intake, routing and ticket tracking for fitness studios",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware runs in reverse order of registration
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RateLimitMiddleware, **get_rate_limits())
app.add_middleware(RequestSizeLimitMiddleware, max_size=get_request_size_limit())

cors_origins = settings.cors_origins_list

if settings.ENVIRONMENT == "production" and "*" in cors_origins:
    logger.warning(
        "WARNING: CORS is set to allow all origins (*) in production. "
        "Set CORS_ORIGINS to the frontend origin."
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=600,
)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(status="healthy", service=SERVICE_NAME, version=VERSION)


@app.get("/")
async def root():
    return {
        "name": "Studio Feedback Desk API",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health"
    }


app.include_router(api_router)
